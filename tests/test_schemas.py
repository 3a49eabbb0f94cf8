import unittest

from pydantic import ValidationError

from wellquest.schemas import ChallengeCreate, ChallengeQuery, DrawOutcome, ProgressUpdate


class ChallengeCreateTests(unittest.TestCase):
    def test_defaults(self):
        payload = ChallengeCreate(
            title="  Morning walk ",
            description="Walk before work",
            type="steps",
            goal=5000,
            duration=5,
        )
        self.assertEqual(payload.title, "Morning walk")
        self.assertEqual(payload.goal_unit, "points")
        self.assertTrue(payload.is_public)
        self.assertEqual(payload.prize, "")

    def test_stringified_values_are_not_coerced(self):
        with self.assertRaises(ValidationError):
            ChallengeCreate.model_validate(
                {
                    "title": "Walk",
                    "description": "Walk",
                    "type": "steps",
                    "goal": "5000",
                    "duration": 5,
                }
            )
        with self.assertRaises(ValidationError):
            ChallengeCreate.model_validate(
                {
                    "title": "Walk",
                    "description": "Walk",
                    "type": "steps",
                    "goal": 5000,
                    "duration": 5,
                    "is_public": "yes",
                }
            )

    def test_duration_bounds(self):
        base = {"title": "t", "description": "d", "type": "custom", "goal": 1}
        with self.assertRaises(ValidationError):
            ChallengeCreate(**base, duration=366)
        self.assertEqual(ChallengeCreate(**base, duration=365).duration, 365)


class OtherSchemaTests(unittest.TestCase):
    def test_progress_update(self):
        self.assertEqual(ProgressUpdate(progress=3).progress, 3.0)
        with self.assertRaises(ValidationError):
            ProgressUpdate(progress=-0.5)

    def test_challenge_query(self):
        self.assertIsNone(ChallengeQuery().status)
        self.assertEqual(ChallengeQuery(status="active").status, "active")
        with self.assertRaises(ValidationError):
            ChallengeQuery(type="yoga")

    def test_draw_outcome_hash_shape(self):
        fields = dict(
            challenge_id="c",
            winner="w",
            eligible_count=1,
            draw_timestamp="2024-06-01T00:00:00.000Z",
            verification_reference="/verify/c?hash=x",
            encoding="delimited",
        )
        DrawOutcome(verification_hash="a" * 64, **fields)
        with self.assertRaises(ValidationError):
            DrawOutcome(verification_hash="A" * 64, **fields)
        with self.assertRaises(ValidationError):
            DrawOutcome(verification_hash="a" * 63, **fields)


if __name__ == "__main__":
    unittest.main()
