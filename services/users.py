"""User service for database operations."""

from typing import List, Optional
from models.user import User


class UserService:
    """Service for managing users.

    Stands in for the authentication collaborator: it only maps an email to
    a user id and never stores or checks credentials.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def find_all(self) -> List[User]:
        """Get all users, ordered by id."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute("SELECT id, email, name FROM users ORDER BY id")
            return [User(id=row[0], email=row[1], name=row[2]) for row in cursor.fetchall()]

    def find(self, user_id: int) -> Optional[User]:
        """Get a single user by ID.

        Args:
            user_id: The user ID to find.

        Returns:
            User object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT id, email, name FROM users WHERE id = ?", (user_id,)
            )
            row = cursor.fetchone()

            if row:
                return User(id=row[0], email=row[1], name=row[2])
            return None

    def find_by_email(self, email: str) -> Optional[User]:
        """Get a single user by email (case-insensitive).

        Args:
            email: The email address to look up.

        Returns:
            User object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT id, email, name FROM users WHERE email = ?",
                (email.strip(),),
            )
            row = cursor.fetchone()

            if row:
                return User(id=row[0], email=row[1], name=row[2])
            return None

    def create(self, email: str, name: Optional[str] = None) -> User:
        """Create a new user.

        Args:
            email: Email address (unique, ignoring case).
            name: Optional display name.

        Returns:
            The created User object with id populated.

        Raises:
            ValueError: If the email is empty.
            sqlite3.IntegrityError: If the email is already registered.
        """
        email = email.strip()
        if not email:
            raise ValueError("Email cannot be empty")

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO users (email, name) VALUES (?, ?)", (email, name)
            )
            conn.commit()
            return User(id=cursor.lastrowid, email=email, name=name)
