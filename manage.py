#!/usr/bin/env python3
"""
Operator management script.

Commands for creating tables, creating users and issuing permit QR strings.
"""

import sys

from sqlalchemy.exc import IntegrityError

from simlok.core.app import create_app, db, get_verification_service
from simlok.models import Submission, User, UserRole


USAGE = """Usage: python manage.py [command]

Available commands:
  init-db                                         - Create database tables
  create-user <email> <password> <role> [name]    - Create a user account
  issue-qr <permit_id>                            - Print the signed QR string of an approved permit

Examples:
  python manage.py init-db
  python manage.py create-user verifier@example.com s3cret123 VERIFIER "Budi Santoso"
  python manage.py issue-qr 3f2a9c1e"""


def init_db():
    # create_app() already runs create_all; this is for explicit provisioning
    db.create_all()
    print("Database tables created successfully!")


def create_user(args):
    if len(args) < 3:
        print("create-user requires <email> <password> <role>")
        return 1

    email, password, role = args[0].strip().lower(), args[1], args[2].upper()
    try:
        role = UserRole.parse(role).value
    except ValueError as e:
        print(str(e))
        return 1

    user = User(email=email, role=role, officer_name=args[3] if len(args) > 3 else None)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        print(f"User {email} already exists")
        return 1

    print(f"Created {role} user {email} ({user.id})")
    return 0


def issue_qr(app, args):
    if not args:
        print("issue-qr requires <permit_id>")
        return 1

    permit = db.session.get(Submission, args[0])
    if permit is None:
        print(f"Permit {args[0]} not found")
        return 1

    try:
        print(get_verification_service(app).issue_qr(permit))
    except ValueError as e:
        print(str(e))
        return 1
    return 0


if __name__ == '__main__':
    app = create_app()

    with app.app_context():
        if len(sys.argv) < 2:
            print(USAGE)
            sys.exit(1)

        command = sys.argv[1]

        if command == 'init-db':
            init_db()
        elif command == 'create-user':
            sys.exit(create_user(sys.argv[2:]))
        elif command == 'issue-qr':
            sys.exit(issue_qr(app, sys.argv[2:]))
        else:
            print(f"Unknown command: {command}")
            print("Run 'python manage.py' to see available commands")
            sys.exit(1)
