import os
import shutil
import tempfile
from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlmodel import select

# ------------------------------------------------------------------
# TEST ENVIRONMENT
# Must be set BEFORE importing scholarseek so Settings and the engine
# pick up the throwaway sqlite database and upload folder.
# ------------------------------------------------------------------
_TMP_DIR = tempfile.mkdtemp(prefix="scholarseek-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-for-pytest-only-0123456789"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["EMAIL_ENABLED"] = "false"
os.environ["ENV"] = "test"

from scholarseek.main import app  # noqa: E402
from scholarseek.core.database import AsyncSessionLocal, init_db, drop_db  # noqa: E402
from scholarseek.core.security import create_access_token, hash_password  # noqa: E402
from scholarseek.models.application import Application  # noqa: E402
from scholarseek.models.enums import ApplicationStatus, ScholarshipStatus  # noqa: E402
from scholarseek.models.scholarship import Scholarship  # noqa: E402
from scholarseek.models.student import Student  # noqa: E402
from scholarseek.models.user import User, UserRole  # noqa: E402


@pytest_asyncio.fixture
async def db():
    await init_db()
    yield
    await drop_db()
    shutil.rmtree(os.environ["UPLOAD_DIR"], ignore_errors=True)


@pytest_asyncio.fixture
async def session(db):
    async with AsyncSessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


# ------------------------------------------------------------------
# DATA HELPERS
# ------------------------------------------------------------------
class Factory:
    def __init__(self, session):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def user(self, role=UserRole.Staff, name=None, email=None, password=None, student_id=None):
        n = self._next()
        return await self._save(User(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value}{n}@example.com",
            # Hashing is slow; only do it when a test logs in
            password_hash=hash_password(password) if password else "unused",
            role=role,
            student_id=student_id,
        ))

    async def student(self, fullname=None, email=None, gwa="1.75"):
        n = self._next()
        student = await self._save(Student(
            student_number=f"2024-{n:04d}",
            fullname=fullname or f"Student {n}",
            email=email or f"student{n}@example.com",
            department="College of Computing",
            program="BSIT",
            year_level="3rd Year",
            gwa=Decimal(gwa) if gwa else None,
        ))
        account = await self.user(
            role=UserRole.Student, name=student.fullname, email=student.email, student_id=student.id
        )
        return student, account

    async def scholarship(self, title="Academic Excellence Grant", min_gwa=None, required_documents=None,
                          status=ScholarshipStatus.Active, deadline=None):
        return await self._save(Scholarship(
            title=title,
            description="For outstanding students",
            sponsor="Biliran Foundation",
            amount=Decimal("15000.00"),
            deadline=deadline or (date.today() + timedelta(days=30)),
            min_gwa=Decimal(min_gwa) if min_gwa else None,
            required_documents=required_documents or [],
            status=status,
        ))

    async def application(self, student, scholarship, status=ApplicationStatus.Pending):
        return await self._save(Application(
            student_id=student.id,
            scholarship_id=scholarship.id,
            full_name=student.fullname,
            email=student.email,
            student_number=student.student_number,
            gwa=student.gwa,
            program=student.program,
            year_level=student.year_level,
            department=student.department,
            status=status,
        ))

    async def pending_applications(self, count, scholarship_title="Academic Excellence Grant"):
        scholarship = await self.scholarship(title=scholarship_title)
        applications = []
        for _ in range(count):
            student, _account = await self.student()
            applications.append(await self.application(student, scholarship))
        return applications


@pytest_asyncio.fixture
async def factory(session):
    return Factory(session)


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}
    return _headers


async def reload(session, model, obj_id):
    result = await session.execute(
        select(model).where(model.id == obj_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@pytest.fixture
def fetch(session):
    async def _fetch(model, obj_id):
        return await reload(session, model, obj_id)
    return _fetch
