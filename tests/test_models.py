import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from wellquest.models import Base, Challenge, ChallengeParticipant, User


class DBTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def _challenge(self, creator, **overrides):
        start = datetime(2024, 5, 25, tzinfo=timezone.utc)
        data = dict(
            title="Hydrate",
            description="Drink water",
            type="water",
            goal=8,
            goal_unit="glasses",
            duration_days=7,
            start_date=start,
            end_date=start + timedelta(days=7),
            creator=creator,
        )
        data.update(overrides)
        return Challenge(**data)

    def test_user_email_is_normalized(self):
        with self.Session() as session:
            user = User(email="  Alice@Example.COM ")
            session.add(user)
            session.commit()
            self.assertEqual(user.email, "alice@example.com")
            self.assertEqual(User.get_by_email(session, "ALICE@example.com"), user)

    def test_user_empty_email_rejected(self):
        with self.assertRaises(ValueError):
            User(email="   ")

    def test_user_public_id_generated_and_unique(self):
        with self.Session() as session:
            first = User(email="a@example.com")
            second = User(email="b@example.com")
            session.add_all([first, second])
            session.commit()
            self.assertRegex(first.public_id, r"^[0-9a-f]{32}$")
            self.assertNotEqual(first.public_id, second.public_id)
            self.assertEqual(User.get_by_public_id(session, first.public_id), first)

            session.add(User(email="c@example.com", public_id=first.public_id))
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_add_points(self):
        user = User(email="p@example.com", points=10)
        self.assertEqual(user.add_points(15), 25)
        self.assertEqual(user.points, 25)

    def test_challenge_rejects_unknown_type(self):
        with self.assertRaises(ValueError):
            self._challenge(None, type="sleep")

    def test_participant_unique_per_challenge(self):
        with self.Session() as session:
            user = User(email="u@example.com")
            session.add(user)
            session.flush()
            challenge = self._challenge(user)
            session.add(challenge)
            session.flush()
            session.add_all(
                [
                    ChallengeParticipant(user_id=user.id, challenge_id=challenge.id),
                    ChallengeParticipant(user_id=user.id, challenge_id=challenge.id),
                ]
            )
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_has_ended(self):
        challenge = self._challenge(None)
        end = challenge.end_date
        self.assertFalse(challenge.has_ended(end - timedelta(microseconds=1)))
        self.assertTrue(challenge.has_ended(end))
        self.assertTrue(challenge.has_ended(end.replace(tzinfo=None) + timedelta(days=1)))

    def test_accepts_joins_until_strictly_after_end(self):
        challenge = self._challenge(None)
        end = challenge.end_date
        self.assertTrue(challenge.accepts_joins(end - timedelta(days=1)))
        self.assertTrue(challenge.accepts_joins(end))
        self.assertFalse(challenge.accepts_joins(end + timedelta(microseconds=1)))

    def test_has_ended_after_reload_from_sqlite(self):
        with self.Session() as session:
            user = User(email="r@example.com")
            challenge = self._challenge(user)
            session.add(challenge)
            session.commit()
            public_id = challenge.public_id

        with self.Session() as session:
            reloaded = Challenge.get_by_public_id(session, public_id)
            self.assertTrue(
                reloaded.has_ended(datetime(2024, 6, 1, tzinfo=timezone.utc))
            )
            self.assertEqual(reloaded.draw_input_timestamp(), "2024-06-01T00:00:00.000Z")

    def test_record_progress(self):
        participant = ChallengeParticipant(progress=0)
        participant.record_progress(7, goal=8)
        self.assertFalse(participant.completed)
        participant.record_progress(8, goal=8)
        self.assertTrue(participant.completed)

    def test_challenge_to_json(self):
        with self.Session() as session:
            user = User(email="j@example.com", public_id="creator-1")
            challenge = self._challenge(user, public_id="chal-1", prize="Bottle")
            challenge.participants.append(ChallengeParticipant(user=user, progress=3))
            session.add(challenge)
            session.flush()

            d = challenge.to_json()
            self.assertEqual(d["id"], "chal-1")
            self.assertEqual(d["type"], "water")
            self.assertEqual(d["goal"], 8)
            self.assertEqual(d["duration"], 7)
            self.assertEqual(d["creator"], "creator-1")
            self.assertEqual(d["prize"], "Bottle")
            self.assertIsNone(d["winner"])
            self.assertIsNone(d["draw_hash"])
            self.assertIsNone(d["verification_reference"])
            self.assertFalse(d["is_completed"])
            self.assertEqual(d["end_date"], "2024-06-01T00:00:00+00:00")
            self.assertIsInstance(d["created_at"], str)
            self.assertEqual(
                d["participants"],
                [
                    {
                        "user": "creator-1",
                        "progress": 3,
                        "joined_at": d["participants"][0]["joined_at"],
                        "completed": False,
                    }
                ],
            )

    def test_verification_reference_after_draw(self):
        challenge = self._challenge(None, public_id="chal-2")
        challenge.draw_hash = "ab" * 32
        self.assertEqual(
            challenge.verification_reference(), f"/verify/chal-2?hash={'ab' * 32}"
        )


if __name__ == "__main__":
    unittest.main()
