#!/usr/bin/env python3
"""
Admin User Seed Script
Creates (or promotes) an admin user who may edit canonical fields and mappings.

Usage:
    python -m scripts.seed_admin <email> <username> <password>

Example:
    python -m scripts.seed_admin admin@example.com admin securepassword123
"""
import sys
import os
from uuid import uuid4

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from credit_ingest.database import SessionLocal, init_db
from credit_ingest.models.db_models import UserDB
from credit_ingest.auth import hash_password


def create_admin_user(db: Session, email: str, username: str, password: str) -> bool:
    """Create an admin user, or promote the existing user with this email."""
    existing = db.query(UserDB).filter(
        (UserDB.email == email) | (UserDB.username == username)
    ).first()

    if existing:
        if existing.email != email:
            print(f"Error: Username '{username}' already exists.")
            return False
        if existing.role == "admin":
            print(f"User '{email}' is already an admin.")
            return True
        existing.role = "admin"
        db.commit()
        print(f"Upgraded existing user '{email}' to admin role.")
        return True

    db.add(UserDB(
        id=str(uuid4()),
        email=email,
        username=username,
        password_hash=hash_password(password),
        role="admin"
    ))
    db.commit()

    print("Admin user created successfully!")
    print(f"  Email: {email}")
    print(f"  Username: {username}")
    return True


def main():
    if len(sys.argv) != 4:
        print(__doc__)
        sys.exit(1)

    email, username, password = sys.argv[1], sys.argv[2], sys.argv[3]

    if len(password) < 8:
        print("Error: Password must be at least 8 characters.")
        sys.exit(1)

    if "@" not in email:
        print("Error: Invalid email format.")
        sys.exit(1)

    init_db()
    db = SessionLocal()
    try:
        success = create_admin_user(db, email, username, password)
    except Exception as e:
        print(f"Error creating admin user: {e}")
        db.rollback()
        success = False
    finally:
        db.close()
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
