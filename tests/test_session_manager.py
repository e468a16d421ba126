from tiretrack.application.ports.session_repo import DuplicateToken
from tiretrack.application.services.session_manager import SessionManager


def test_create_and_resolve(sessions, session_repo, clock):
    token = sessions.create("user-1", ip_address="127.0.0.1")
    record = sessions.resolve(token)
    assert record.user_id == "user-1"
    assert record.created_at == clock.now
    assert (record.expires_at - record.created_at).days == 30
    assert len(session_repo) == 1


def test_tokens_are_unique_and_opaque(sessions):
    tokens = {sessions.create("user-1") for _ in range(50)}
    assert len(tokens) == 50
    assert all("user-1" not in t and len(t) >= 43 for t in tokens)


def test_resolve_missing_or_unknown_is_none(sessions):
    assert sessions.resolve(None) is None
    assert sessions.resolve("") is None
    assert sessions.resolve("no-such-token") is None


def test_session_expires(sessions, clock):
    token = sessions.create("user-1")
    clock.advance(days=30)
    assert sessions.resolve(token) is not None
    clock.advance(seconds=1)
    assert sessions.resolve(token) is None
    clock.advance(days=1)
    assert sessions.resolve(token) is None


def test_destroy_is_idempotent(sessions):
    token = sessions.create("user-1")
    sessions.destroy(token)
    assert sessions.resolve(token) is None
    sessions.destroy(token)
    sessions.destroy(None)
    assert sessions.resolve(token) is None


def test_token_collision_is_retried(clock):
    class CollidingRepo:
        def __init__(self):
            self.calls = 0
            self.saved = []

        def create(self, record):
            self.calls += 1
            if self.calls == 1:
                raise DuplicateToken(record.token)
            self.saved.append(record)
            return record

    repo = CollidingRepo()
    manager = SessionManager(session_repo=repo, clock=clock)
    token = manager.create("user-1")
    assert repo.calls == 2
    assert repo.saved[0].token == token
