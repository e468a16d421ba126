PHONE = "0812345678"


def test_scenario_a_second_request_hits_cooldown(gateway):
    assert gateway.request_otp(PHONE) == {"success": True, "phone_masked": "08x-xxx-x678"}

    result = gateway.request_otp(PHONE)
    assert result["success"] is False
    assert result["cooldown_seconds"] == 60
    assert result["error"] == "Please wait before requesting another OTP"


def test_scenario_b_wrong_code_then_right_code(gateway, issuer, sms, monkeypatch):
    monkeypatch.setattr(issuer, "generate_code", lambda: "123456")
    gateway.request_otp(PHONE)

    result = gateway.verify_otp(PHONE, "000000")
    assert result == {"success": False, "error": "Invalid or expired OTP code", "attempts_remaining": 4}

    result = gateway.verify_otp(PHONE, "123456")
    assert result["success"] is True
    assert result["session_token"]


def test_scenario_c_exhausted_attempts_block_correct_code(gateway, issuer, monkeypatch):
    monkeypatch.setattr(issuer, "generate_code", lambda: "123456")
    gateway.request_otp(PHONE)

    for _ in range(5):
        assert gateway.verify_otp(PHONE, "654321")["success"] is False

    result = gateway.verify_otp(PHONE, "123456")
    assert result["success"] is False
    assert result["error"] == "Invalid or expired OTP code"


def test_invalid_phone_returns_error_without_side_effects(gateway, sms, audit):
    result = gateway.request_otp("hello")
    assert result == {"success": False, "error": "Invalid Thai phone number format"}
    assert sms.sent == []
    assert audit.entries[-1]["success"] is False


def test_delivery_failure_is_distinct_from_cooldown(gateway, sms):
    sms.fail_with = "Gateway timeout"
    result = gateway.request_otp(PHONE)
    assert result == {"success": False, "error": "Gateway timeout"}
    assert "cooldown_seconds" not in result


def test_unknown_phone_has_no_attempts_remaining(gateway):
    result = gateway.verify_otp(PHONE, "123456")
    assert result == {"success": False, "error": "Invalid or expired OTP code"}


def test_session_round_trip_and_logout(gateway, sms, clock):
    gateway.request_otp(PHONE)
    token = gateway.verify_otp(PHONE, sms.last_code)["session_token"]

    session = gateway.resolve_session(token)
    user = gateway.current_user(token)
    assert session.user_id == user.id
    assert user.phone == PHONE

    assert gateway.logout(token) == {"success": True}
    assert gateway.resolve_session(token) is None
    assert gateway.logout(token) == {"success": True}
    assert gateway.logout(None) == {"success": True}


def test_session_resolves_until_expiry(gateway, sms, clock):
    gateway.request_otp(PHONE)
    token = gateway.verify_otp(PHONE, sms.last_code)["session_token"]
    user_id = gateway.resolve_session(token).user_id

    clock.advance(days=29, hours=23)
    assert gateway.resolve_session(token).user_id == user_id
    clock.advance(hours=2)
    assert gateway.resolve_session(token) is None
    assert gateway.current_user(token) is None


def test_each_login_gets_a_new_token(gateway, sms, clock):
    tokens = set()
    for _ in range(3):
        gateway.request_otp(PHONE)
        tokens.add(gateway.verify_otp(PHONE, sms.last_code)["session_token"])
        clock.advance(seconds=61)
    assert len(tokens) == 3


def test_audit_records_each_step(gateway, sms, audit):
    gateway.request_otp(PHONE)
    gateway.verify_otp(PHONE, sms.last_code)
    actions = [(e["action"], e["success"]) for e in audit.entries]
    assert actions == [("request_otp", True), ("verify_otp", True)]
    assert audit.entries[-1]["user_id"] is not None
