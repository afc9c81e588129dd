# tests/test_user_directory.py
import pytest

from meetings_attendance.services.user_directory import SqlUserDirectory


@pytest.mark.asyncio
async def test_lookup_is_case_insensitive(db_session, local_users):
    directory = SqlUserDirectory(db_session)

    assert await directory.find_user_by_email("Alice@X.com") == local_users["alice@x.com"]
    assert await directory.find_user_by_email("BOB@X.COM") == local_users["bob@x.com"]


@pytest.mark.asyncio
async def test_lookup_ignores_surrounding_whitespace(db_session, local_users):
    directory = SqlUserDirectory(db_session)

    assert await directory.find_user_by_email("alice@x.com ") == local_users["alice@x.com"]


@pytest.mark.asyncio
@pytest.mark.parametrize("email", [None, "", "   "])
async def test_empty_email_never_matches(db_session, local_users, email):
    directory = SqlUserDirectory(db_session)

    assert await directory.find_user_by_email(email) is None


@pytest.mark.asyncio
async def test_no_fuzzy_matching(db_session, local_users):
    """
    Only exact addresses match; similar addresses or bare local parts do not.
    """
    directory = SqlUserDirectory(db_session)

    assert await directory.find_user_by_email("alice@x.co") is None
    assert await directory.find_user_by_email("alice") is None
    assert await directory.find_user_by_email("alice@sub.x.com") is None


@pytest.mark.asyncio
async def test_get_user(db_session, local_users):
    directory = SqlUserDirectory(db_session)

    user = await directory.get_user(local_users["bob@x.com"])
    assert user is not None
    assert user.full_name == "Bob"
    assert await directory.get_user(9999) is None
