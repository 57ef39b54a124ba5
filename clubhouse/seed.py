"""Demo data for local development (enabled with SEED_DEMO_DATA=true)."""

import logging

from sqlalchemy.orm import Session

from clubhouse.models.message import Message
from clubhouse.models.user import User
from clubhouse.services.auth import hash_password

logger = logging.getLogger("clubhouse.seed")

DEMO_PASSWORD = "Password123"

DEMO_USERS = [
    # first, last, email, is_member, is_admin
    ("John", "Doe", "john.doe@example.com", True, True),
    ("Jane", "Smith", "jane.smith@example.com", True, False),
    ("Bob", "Johnson", "bob.johnson@example.com", True, False),
    ("Alice", "Williams", "alice.williams@example.com", False, False),
    ("Charlie", "Brown", "charlie.brown@example.com", False, False),
]

DEMO_MESSAGES = [
    # title, text, author index
    (
        "Welcome to the Club!",
        "This is our exclusive members-only club. Feel free to share your thoughts and ideas here. "
        "Only members can see who posted what message!",
        0,
    ),
    (
        "First Impressions",
        "I just became a member and I am loving the community here. "
        "Looking forward to participating more!",
        1,
    ),
    (
        "Book Recommendation",
        "Has anyone read \"The Midnight Library\"? I would love to discuss the philosophical themes with fellow members.",
        2,
    ),
    (
        "Coffee Chat",
        "What is everyone drinking today? I am trying a new Ethiopian blend from my local roaster.",
        1,
    ),
    (
        "Weekend Plans",
        "Planning to go hiking this weekend in the mountains. Anyone else have outdoor adventures planned?",
        2,
    ),
]


def seed_demo_data(db: Session) -> bool:
    """Insert demo users and messages into an empty database. Returns False if users already exist."""
    if db.query(User.id).first() is not None:
        logger.info("Database already has users, skipping demo seed")
        return False

    password_hash = hash_password(DEMO_PASSWORD)
    users = [
        User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=password_hash,
            is_member=is_member,
            is_admin=is_admin,
        )
        for first_name, last_name, email, is_member, is_admin in DEMO_USERS
    ]
    db.add_all(users)
    db.flush()

    db.add_all(Message(title=title, text=text, user_id=users[author].id) for title, text, author in DEMO_MESSAGES)
    db.commit()
    logger.info("Seeded %d demo users and %d messages", len(users), len(DEMO_MESSAGES))
    return True
