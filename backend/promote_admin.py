"""Grant the admin role to an existing profile.

Usage: python promote_admin.py someone@example.com

Registration always creates students; this is the only way besides
seed_db.py to get an administrator.
"""
import sys

from quizboard.db.session import get_session_factory
from quizboard.services.repository import QuizRepository

if len(sys.argv) != 2:
    print(__doc__)
    sys.exit(2)

email = sys.argv[1]
session_factory = get_session_factory()
with session_factory() as db:
    profile = QuizRepository(db).promote_to_admin(email)

if profile is None:
    print(f"❌ No profile registered as {email}")
    sys.exit(1)
print(f"✅ {email} is now an admin")
