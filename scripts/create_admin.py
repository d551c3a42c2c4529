"""
Script to grant (or revoke) the admin role on an existing account.
Usage:
  python scripts/create_admin.py --email admin@example.com
  python scripts/create_admin.py --email admin@example.com --revoke

Admins may edit and delete any recipe. It uses MONGODB_URI and DATABASE_NAME
environment variables from .env
"""
import os
import sys
import argparse
from dotenv import load_dotenv
from pymongo import MongoClient

load_dotenv()

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DATABASE_NAME", "recipedia")


def set_role(users, email: str, role: str) -> bool:
    res = users.update_one({"email": email.strip().lower()}, {"$set": {"role": role}})
    return res.matched_count > 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Promote a user to admin")
    parser.add_argument("--email", required=True, help="Email of user to promote to admin")
    parser.add_argument("--revoke", action="store_true", help="Demote the user back to a regular role")
    args = parser.parse_args(argv)

    role = "user" if args.revoke else "admin"
    client = MongoClient(MONGODB_URI)
    try:
        if set_role(client[DB_NAME]["users"], args.email, role):
            print(f"User {args.email} updated to role={role}")
            return 0
        print(f"No user found with email {args.email}")
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
