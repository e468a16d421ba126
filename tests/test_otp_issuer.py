import threading

import pytest

from tiretrack.application.locks import KeyedLock
from tiretrack.exceptions import InvalidInput, RateLimited, DeliveryFailed

PHONE = "0812345678"


def test_request_otp_stores_record_and_sends_code(issuer, otp_repo, sms, clock):
    assert issuer.request_otp("081-234-5678") == PHONE

    record = otp_repo.get(PHONE)
    assert record is not None
    assert len(record.code) == 6 and record.code.isdigit()
    assert record.attempts_used == 0
    assert record.created_at == clock.now
    assert record.last_sent_at == clock.now
    assert (record.expires_at - clock.now).total_seconds() == 300
    assert sms.sent == [(PHONE, record.code)]


def test_invalid_phone_is_rejected_before_any_state_change(issuer, otp_repo, sms):
    with pytest.raises(InvalidInput):
        issuer.request_otp("12345")
    assert otp_repo.get("12345") is None
    assert sms.sent == []


def test_second_request_within_cooldown_is_rate_limited(issuer, sms, clock):
    issuer.request_otp(PHONE)
    with pytest.raises(RateLimited) as exc:
        issuer.request_otp(PHONE)
    assert exc.value.remaining_seconds == 60
    assert len(sms.sent) == 1


def test_cooldown_countdown_decreases_and_then_clears(issuer, sms, clock):
    issuer.request_otp(PHONE)
    seen = []
    for _ in range(3):
        clock.advance(seconds=15)
        with pytest.raises(RateLimited) as exc:
            issuer.request_otp(PHONE)
        seen.append(exc.value.remaining_seconds)
    assert seen == [45, 30, 15]
    assert all(s > 0 for s in seen)

    clock.advance(seconds=15)
    assert issuer.request_otp(PHONE) == PHONE
    assert len(sms.sent) == 2


def test_partial_seconds_round_up(issuer, clock):
    issuer.request_otp(PHONE)
    clock.advance(seconds=59, milliseconds=500)
    with pytest.raises(RateLimited) as exc:
        issuer.request_otp(PHONE)
    assert exc.value.remaining_seconds == 1


def test_new_request_overwrites_previous_record(issuer, otp_repo, clock):
    issuer.request_otp(PHONE)
    otp_repo.increment_attempts(PHONE, 5)
    clock.advance(seconds=61)
    issuer.request_otp(PHONE)
    record = otp_repo.get(PHONE)
    assert record.attempts_used == 0
    assert record.last_sent_at == clock.now


def test_expired_record_does_not_block(otp_repo, sms, clock):
    from tiretrack.application.services.otp_issuer import OtpIssuer

    # cooldown longer than ttl, so only the expiry can release it
    issuer = OtpIssuer(otp_repo=otp_repo, sms_sender=sms, ttl_seconds=30, cooldown_seconds=120, clock=clock)
    issuer.request_otp(PHONE)
    clock.advance(seconds=31)
    assert issuer.request_otp(PHONE) == PHONE


def test_delivery_failure_is_reported_and_record_kept(issuer, otp_repo, sms):
    sms.fail_with = "Insufficient credit"
    with pytest.raises(DeliveryFailed) as exc:
        issuer.request_otp(PHONE)
    assert exc.value.message == "Insufficient credit"
    assert otp_repo.get(PHONE) is not None

    # the stored record still holds the cooldown
    with pytest.raises(RateLimited):
        issuer.request_otp(PHONE)
    assert len(sms.sent) == 1


def test_generated_codes_are_fixed_length_digits(issuer):
    issuer.code_length = 4
    codes = {issuer.generate_code() for _ in range(200)}
    assert all(len(c) == 4 and c.isdigit() for c in codes)
    assert len(codes) > 1


def test_concurrent_requests_for_same_phone_send_once(issuer, sms):
    results = []

    def worker():
        try:
            results.append(issuer.request_otp(PHONE))
        except RateLimited:
            results.append("limited")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(PHONE) == 1
    assert results.count("limited") == 7
    assert len(sms.sent) == 1


def test_keyed_lock_releases_entries():
    locks = KeyedLock()
    with locks.hold("a"):
        with locks.hold("b"):
            assert len(locks) == 2
    assert len(locks) == 0
