import pytest

from santa_letters.config import settings
from santa_letters.models.domain.letter_domain import Letter
from santa_letters.services.email_service import DispatchError
from santa_letters.services.letters_service import LettersService


class FakeSender:
    """Stands in for EmailService.send_letter."""

    def __init__(self, fail_on: set[str] | None = None):
        self.sent: list[Letter] = []
        self.fail_on = fail_on or set()

    async def __call__(self, letter: Letter) -> str:
        if letter.username in self.fail_on:
            raise DispatchError("SMTP relay refused connection", letter_id=letter.id)
        self.sent.append(letter)
        return f"<{letter.id}@northpole.com>"


@pytest.fixture(autouse=True)
def scheduler_disabled(monkeypatch):
    """Keep the app lifespan from starting the real dispatch timer."""
    monkeypatch.setattr(settings, "SCHEDULER_ENABLED", False)


@pytest.fixture
def fake_sender():
    return FakeSender()


@pytest.fixture
def letters_service(fake_sender):
    return LettersService(sender=fake_sender)


@pytest.fixture
def remote_users():
    return [
        {"username": "charlie.brown", "uid": "730b0412-72c7-11e9-a923-1681be663d3e"},
        {"username": "bugs.bunny", "uid": "730b06a6-72c7-11e9-a923-1681be663d3e"},
        {"username": "no.profile", "uid": "730b0804-72c7-11e9-a923-1681be663d3e"},
    ]


@pytest.fixture
def remote_profiles():
    return [
        {
            "userUid": "730b0412-72c7-11e9-a923-1681be663d3e",
            "address": "219-1130, Ikanikeisaiganaibaai, Musashino-shi, Tokyo",
            "birthdate": "2018/10/19",
        },
        {
            "userUid": "730b06a6-72c7-11e9-a923-1681be663d3e",
            "address": "292-1082, Yanagisawa, Yokosuka-shi, Kanagawa",
            "birthdate": "2010/01/31",
        },
    ]
