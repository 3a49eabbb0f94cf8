from datetime import datetime, timedelta, timezone

from wellquest.db.engine import get_sessionmaker, make_engine
from wellquest.models import Base, User
from wellquest.workflows import (
    create_challenge,
    join_challenge,
    run_fair_draw,
    update_progress,
)


def main() -> None:
    """Seed the development database with sample users and challenges."""
    engine = make_engine()

    # Drop and recreate all tables.
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        # Users
        alice = User(email="alice@example.com", name="Alice")
        bob = User(email="bob@example.com", name="Bob")
        carol = User(email="carol@example.com", name="Carol")
        session.add_all([alice, bob, carol])
        session.flush()

        # An active challenge that is still open for joining
        create_challenge(
            session,
            alice,
            {
                "title": "10k Steps Week",
                "description": "Walk 10,000 steps every day for a week.",
                "type": "steps",
                "goal": 70000,
                "goal_unit": "steps",
                "duration": 7,
                "prize": "Wellness store voucher",
            },
            now=now,
        )

        # A finished challenge, drawn so the verification flow has data
        started = now - timedelta(days=14)
        meditation = create_challenge(
            session,
            bob,
            {
                "title": "Mindful Fortnight",
                "description": "Meditate ten minutes a day for two weeks.",
                "type": "meditation",
                "goal": 140,
                "goal_unit": "minutes",
                "duration": 7,
            },
            now=started,
        )
        for user in (alice, carol):
            join_challenge(session, meditation, user, now=started + timedelta(days=1))
        for user, minutes in ((alice, 150), (bob, 140), (carol, 90)):
            update_progress(session, meditation, user, minutes)

        outcome = run_fair_draw(session, meditation, bob, now=now)
        print(
            f"Seeded draw {outcome.challenge_id}: winner {outcome.winner}, "
            f"hash {outcome.verification_hash}"
        )


if __name__ == "__main__":
    main()
