import unittest
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from salon_booking.core.config import Settings
from salon_booking.core.security import (
    Actor,
    Role,
    can_manage_schedule,
    can_override_cancellation_window,
    create_access_token,
    decode_actor,
    issue_staff_token,
)

SECRET = "test-secret"


class TestActorResolution(unittest.TestCase):
    """Token JWT -> Actor e capacidades por papel."""

    def test_anonymous_actor_is_customer(self):
        actor = Actor()

        self.assertIsNone(actor.id)
        self.assertEqual(actor.roles, frozenset({Role.CUSTOMER}))
        self.assertEqual(actor.label, "customer")
        self.assertFalse(can_override_cancellation_window(actor))
        self.assertFalse(can_manage_schedule(actor))

    def test_decode_token_with_roles(self):
        token = create_access_token({"sub": "user-1", "roles": ["reception"]}, SECRET)

        actor = decode_actor(token, SECRET)

        self.assertEqual(actor.id, "user-1")
        self.assertEqual(actor.roles, frozenset({Role.RECEPTION}))
        self.assertTrue(can_override_cancellation_window(actor))
        self.assertFalse(can_manage_schedule(actor))

    def test_unknown_roles_are_ignored(self):
        token = create_access_token({"sub": "user-1", "roles": ["manager", "superhero"]}, SECRET)

        with self.assertLogs("salon_booking.core.security", level="WARNING"):
            actor = decode_actor(token, SECRET)

        self.assertEqual(actor.roles, frozenset({Role.MANAGER}))

    def test_token_without_roles_is_customer(self):
        actor = decode_actor(create_access_token({"sub": "user-2"}, SECRET), SECRET)
        self.assertEqual(actor.roles, frozenset({Role.CUSTOMER}))

    def test_capabilities(self):
        self.assertTrue(can_override_cancellation_window(Actor(id="a", roles=frozenset({Role.ADMIN}))))
        self.assertTrue(can_override_cancellation_window(Actor(id="m", roles=frozenset({Role.MANAGER}))))
        self.assertFalse(can_override_cancellation_window(Actor(id="s", roles=frozenset({Role.STYLIST}))))
        self.assertTrue(can_manage_schedule(Actor(id="o", roles=frozenset({Role.OWNER}))))

    def test_token_without_subject(self):
        token = jwt.encode({"roles": ["admin"]}, SECRET, algorithm="HS256")
        with self.assertRaises(JWTError):
            decode_actor(token, SECRET)

    def test_wrong_secret(self):
        token = create_access_token({"sub": "user-1"}, SECRET)
        with self.assertRaises(JWTError):
            decode_actor(token, "another-secret")

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, SECRET, expires_delta=timedelta(minutes=-5))
        with self.assertRaises(JWTError):
            decode_actor(token, SECRET)

    def test_staff_token_uses_configured_lifetime(self):
        settings = Settings(secret_key=SECRET, access_token_expire_minutes=90)

        before = datetime.now(timezone.utc)
        token = issue_staff_token(settings, "owner-1", [Role.OWNER])

        claims = jwt.decode(token, SECRET, algorithms=["HS256"])
        expires_in = datetime.fromtimestamp(claims["exp"], timezone.utc) - before
        self.assertGreater(expires_in, timedelta(minutes=89))
        self.assertLessEqual(expires_in, timedelta(minutes=90, seconds=5))
        self.assertEqual(claims["roles"], ["owner"])
        self.assertEqual(decode_actor(token, SECRET).roles, frozenset({Role.OWNER}))
