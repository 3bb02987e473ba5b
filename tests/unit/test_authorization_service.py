from datetime import date

import httpx
import pytest

from santa_letters.services.authorization_service import (
    AuthorizationService,
    DataFetchError,
    calculate_age,
)

TODAY = date(2026, 10, 19)
USERS_URL = "https://santa-data.test/users.json"
PROFILES_URL = "https://santa-data.test/userProfiles.json"


def _service() -> AuthorizationService:
    return AuthorizationService(users_url=USERS_URL, profiles_url=PROFILES_URL, clock=lambda: TODAY)


def _mock_remote(httpx_mock, users, profiles):
    httpx_mock.add_response(method="GET", url=USERS_URL, json=users)
    httpx_mock.add_response(method="GET", url=PROFILES_URL, json=profiles)


def test_calculate_age_on_birthday():
    assert calculate_age(date(2018, 10, 19), TODAY) == 8


def test_calculate_age_day_before_birthday():
    assert calculate_age(date(2018, 10, 20), TODAY) == 7


def test_calculate_age_later_month():
    assert calculate_age(date(2016, 11, 1), TODAY) == 9
    assert calculate_age(date(2016, 9, 30), TODAY) == 10


@pytest.mark.asyncio
async def test_validate_user_under_10(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    result = await service.validate_user("charlie.brown")
    await service.close()

    assert result.is_valid is True
    assert result.error is None
    assert result.user.username == "charlie.brown"
    assert result.user.uid == "730b0412-72c7-11e9-a923-1681be663d3e"
    assert result.user.age == 8
    assert result.user.address == "219-1130, Ikanikeisaiganaibaai, Musashino-shi, Tokyo"


@pytest.mark.asyncio
async def test_validate_user_too_old(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    result = await service.validate_user("bugs.bunny")
    await service.close()

    assert result.is_valid is False
    assert result.user is None
    assert result.error.code == 403
    assert "16 years old" in result.error.message
    assert "too old" in result.error.message


@pytest.mark.asyncio
async def test_validate_user_exactly_10_is_rejected(httpx_mock, remote_users):
    profiles = [
        {
            "userUid": "730b0412-72c7-11e9-a923-1681be663d3e",
            "address": "Tokyo",
            "birthdate": "2016/10/19",
        }
    ]
    _mock_remote(httpx_mock, remote_users, profiles)
    service = _service()

    result = await service.validate_user("charlie.brown")
    await service.close()

    assert result.is_valid is False
    assert result.error.code == 403
    assert "10 years old" in result.error.message


@pytest.mark.asyncio
async def test_validate_user_unknown_username(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    result = await service.validate_user("Charlie.Brown")
    await service.close()

    assert result.is_valid is False
    assert result.error.code == 404
    assert result.error.message == "User not found"


@pytest.mark.asyncio
async def test_validate_user_missing_profile(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    result = await service.validate_user("no.profile")
    await service.close()

    assert result.is_valid is False
    assert result.error.code == 404
    assert result.error.message == "User profile not found"


@pytest.mark.asyncio
async def test_validate_user_non_ok_response(httpx_mock, remote_profiles):
    httpx_mock.add_response(method="GET", url=USERS_URL, status_code=500)
    httpx_mock.add_response(method="GET", url=PROFILES_URL, json=remote_profiles)
    service = _service()

    with pytest.raises(DataFetchError) as exc:
        await service.validate_user("charlie.brown")
    await service.close()

    assert str(exc.value) == "Failed to fetch user data"


@pytest.mark.asyncio
async def test_validate_user_network_error(httpx_mock, remote_users):
    httpx_mock.add_response(method="GET", url=USERS_URL, json=remote_users)
    httpx_mock.add_exception(httpx.ConnectError("Network error"), url=PROFILES_URL)
    service = _service()

    with pytest.raises(DataFetchError) as exc:
        await service.validate_user("charlie.brown")
    await service.close()

    assert str(exc.value) == "Failed to fetch user data"


@pytest.mark.asyncio
async def test_validate_user_malformed_birthdate_is_rejected(httpx_mock, remote_users):
    profiles = [
        {
            "userUid": "730b0412-72c7-11e9-a923-1681be663d3e",
            "address": "Tokyo",
            "birthdate": "19-10-2018",
        }
    ]
    _mock_remote(httpx_mock, remote_users, profiles)
    service = _service()

    result = await service.validate_user("charlie.brown")
    await service.close()

    assert result.is_valid is False
    assert result.error.code == 422
    assert result.error.message == "User profile has an invalid birthdate"


@pytest.mark.asyncio
async def test_broken_profile_of_other_user_does_not_block(httpx_mock, remote_users, remote_profiles):
    profiles = [*remote_profiles, {"userUid": "someone-else", "birthdate": "2015/02/30"}]
    _mock_remote(httpx_mock, remote_users, profiles)
    service = _service()

    result = await service.validate_user("charlie.brown")
    await service.close()

    assert result.is_valid is True
    assert result.user.age == 8


@pytest.mark.asyncio
async def test_duplicate_records_first_match_wins(httpx_mock, remote_users, remote_profiles):
    users = [*remote_users, {"username": "charlie.brown", "uid": "duplicate-uid"}]
    profiles = [
        *remote_profiles,
        {
            "userUid": "730b0412-72c7-11e9-a923-1681be663d3e",
            "address": "Second address",
            "birthdate": "2000/01/01",
        },
    ]
    _mock_remote(httpx_mock, users, profiles)
    service = _service()

    result = await service.validate_user("charlie.brown")
    await service.close()

    assert result.is_valid is True
    assert result.user.uid == "730b0412-72c7-11e9-a923-1681be663d3e"
    assert result.user.address == "219-1130, Ikanikeisaiganaibaai, Musashino-shi, Tokyo"


@pytest.mark.asyncio
async def test_validate_user_wrong_payload_shape(httpx_mock, remote_profiles):
    _mock_remote(httpx_mock, {"users": []}, remote_profiles)
    service = _service()

    with pytest.raises(DataFetchError):
        await service.validate_user("charlie.brown")
    await service.close()


@pytest.mark.asyncio
async def test_is_user_under_10(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    assert await service.is_user_under_10("charlie.brown") is True
    await service.close()


@pytest.mark.asyncio
async def test_get_user_info_returns_none_when_rejected(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    assert await service.get_user_info("bugs.bunny") is None
    await service.close()


@pytest.mark.asyncio
async def test_every_call_refetches(httpx_mock, remote_users, remote_profiles):
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    _mock_remote(httpx_mock, remote_users, remote_profiles)
    service = _service()

    await service.validate_user("charlie.brown")
    await service.validate_user("charlie.brown")
    await service.close()

    assert len(httpx_mock.get_requests()) == 4
