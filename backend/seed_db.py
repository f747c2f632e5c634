"""One-time DB setup: create tables and seed an admin, a student and a sample quiz."""
from quizboard.core.security import hash_password
from quizboard.db.models import Profile, Quiz, RoleEnum
from quizboard.db.session import Base, get_engine, get_session_factory
from quizboard.domain.models import QuestionDefinition, QuizDefinition
from quizboard.services.repository import QuizRepository

SAMPLE_QUIZ_TITLE = "General Knowledge Warm-up"

SAMPLE_QUESTIONS = [
    QuestionDefinition(
        question="What is the capital of France?",
        options=("Berlin", "Madrid", "Paris", "Rome"),
        correct_answer=2,
        points=10,
    ),
    QuestionDefinition(
        question="How many continents are there?",
        options=("5", "6", "7", "8"),
        correct_answer=2,
        points=10,
    ),
    QuestionDefinition(
        question="Which planet is known as the Red Planet?",
        options=("Venus", "Mars", "Jupiter"),
        correct_answer=1,
        points=5,
    ),
]

# 1. Create all tables
engine = get_engine()
Base.metadata.create_all(bind=engine)
print("✅ All tables created")

session_factory = get_session_factory()
with session_factory() as db:
    # 2. Test admin profile
    admin = db.query(Profile).filter(Profile.email == "admin@example.com").first()
    if not admin:
        admin = Profile(
            email="admin@example.com",
            hashed_password=hash_password("admin123"),
            full_name="Admin User",
            role=RoleEnum.ADMIN,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        print("✅ Created admin: admin@example.com / admin123")
    else:
        print("  Admin profile already exists")

    # 3. Test student profile
    student = db.query(Profile).filter(Profile.email == "student@example.com").first()
    if not student:
        student = Profile(
            email="student@example.com",
            hashed_password=hash_password("student123"),
            full_name="Student User",
            role=RoleEnum.STUDENT,
        )
        db.add(student)
        db.commit()
        print("✅ Created student: student@example.com / student123")
    else:
        print("  Student profile already exists")

    # 4. Sample timed quiz
    quiz = db.query(Quiz).filter(Quiz.title == SAMPLE_QUIZ_TITLE).first()
    if not quiz:
        definition = QuizDefinition.build(
            SAMPLE_QUIZ_TITLE,
            SAMPLE_QUESTIONS,
            time_limit=5,
            description="Three quick questions to try the platform.",
        )
        quiz = QuizRepository(db).create_quiz(definition, created_by=admin.id)
        print(f"✅ Created sample quiz (id={quiz.id}, {quiz.total_points} points, 5 min)")
    else:
        print("  Sample quiz already exists")

print("\n🎉 Database is ready to use!")
print("   Admin:   admin@example.com   / admin123")
print("   Student: student@example.com / student123")
