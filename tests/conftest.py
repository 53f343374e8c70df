import os
import sys
import tempfile
import uuid

# Ensure the project root is on sys.path for imports during tests
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# 上傳目錄指向暫存資料夾 (必須在匯入 chairai 之前設定)
os.environ.setdefault("UPLOAD_ROOT", tempfile.mkdtemp(prefix="chairai-uploads-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chairai.main import app
from chairai.core.database import Base, get_db
from chairai.core.security import create_access_token
from chairai.core.storage import LocalStorage, StorageError, get_storage
from chairai.models.user import User, UserRoleEnum
from chairai.models.dictionary import Category, Material, Specialization
from chairai.models.generated_image import GeneratedImage
from chairai.models.project import Project, ProjectStatusEnum
from chairai.models.proposal import Proposal
from chairai.models.review import Review
from chairai.models.artisan_profile import ArtisanProfile, ArtisanSpecialization, PortfolioImage


class FailingStorage(LocalStorage):
    """上傳一律失敗的 storage"""

    async def upload(self, bucket, path, data, content_type=None):
        raise StorageError("storage unavailable")


class Seeder:
    """直接寫入資料庫的測試資料工廠 (略過 Service 的檢查)"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def user(self, role=UserRoleEnum.client, email=None) -> User:
        email = email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com"
        return await self._save(User(email=email, password_hash="not-a-real-hash", role=role))

    async def client(self) -> User:
        return await self.user(UserRoleEnum.client)

    async def artisan(self) -> User:
        return await self.user(UserRoleEnum.artisan)

    async def category(self, name=None) -> Category:
        return await self._save(Category(name=name or f"Krzesła {uuid.uuid4().hex[:6]}"))

    async def material(self, name=None) -> Material:
        return await self._save(Material(name=name or f"Dąb {uuid.uuid4().hex[:6]}"))

    async def specialization(self, name=None) -> Specialization:
        return await self._save(Specialization(name=name or f"Stolarstwo {uuid.uuid4().hex[:6]}"))

    async def image(self, owner: User, is_used=False) -> GeneratedImage:
        return await self._save(GeneratedImage(
            user_id=owner.id,
            prompt="Dębowe krzesło w stylu skandynawskim",
            image_url=f"https://img.example.com/{uuid.uuid4().hex}.png",
            is_used=is_used,
        ))

    async def project(self, client: User, status=ProjectStatusEnum.open, category=None, material=None) -> Project:
        image = await self.image(client, is_used=True)
        category = category or await self.category()
        material = material or await self.material()
        return await self._save(Project(
            client_id=client.id,
            generated_image_id=image.id,
            category_id=category.id,
            material_id=material.id,
            status=status,
            dimensions="100x50x45 cm",
            budget_range="2000-3000 PLN",
        ))

    async def proposal(self, project: Project, artisan: User, price=2500) -> Proposal:
        return await self._save(Proposal(
            project_id=project.id,
            artisan_id=artisan.id,
            price=price,
            message="Wykonam w 3 tygodnie",
        ))

    async def accepted_project(self, status=ProjectStatusEnum.in_progress, client=None, artisan=None, price=2500):
        """建立一個已接受提案的案件，回傳 (project, client, artisan, proposal)"""
        client = client or await self.client()
        artisan = artisan or await self.artisan()
        project = await self.project(client, status=ProjectStatusEnum.open)
        proposal = await self.proposal(project, artisan, price=price)
        project.status = status
        project.accepted_proposal_id = proposal.id
        project.accepted_price = price
        project = await self._save(project)
        return project, client, artisan, proposal

    async def profile(self, artisan: User, is_public=False, nip=None, images=0, company_name=None) -> ArtisanProfile:
        profile = await self._save(ArtisanProfile(
            user_id=artisan.id,
            company_name=company_name or "Stolarnia Kowalski",
            nip=nip or str(uuid.uuid4().int)[:10],
            is_public=is_public,
        ))
        for _ in range(images):
            await self.portfolio_image(artisan)
        return profile

    async def portfolio_image(self, artisan: User) -> PortfolioImage:
        return await self._save(PortfolioImage(
            artisan_id=artisan.id,
            image_url=f"/static/uploads/portfolio-images/{artisan.id}/{uuid.uuid4()}.jpg",
        ))

    async def link_specialization(self, artisan: User, specialization: Specialization) -> None:
        await self._save(ArtisanSpecialization(artisan_id=artisan.id, specialization_id=specialization.id))

    async def review(self, project: Project, reviewer: User, reviewee: User, rating=5, comment=None) -> Review:
        return await self._save(Review(
            project_id=project.id,
            reviewer_id=reviewer.id,
            reviewee_id=reviewee.id,
            rating=rating,
            comment=comment,
        ))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(root=str(tmp_path), url_prefix="/static/uploads")


@pytest.fixture
async def client(session_factory, storage):
    """HTTP client：get_db / get_storage 指向測試用的資料庫與暫存目錄"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": user.email, "user_id": user.id, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def failing_storage(tmp_path):
    return FailingStorage(root=str(tmp_path), url_prefix="/static/uploads")


@pytest.fixture
def break_commit(db, monkeypatch):
    """呼叫後 db.commit() 一律失敗；Repository 仍會真正執行 rollback"""
    def _break():
        async def failing_commit():
            raise SQLAlchemyError("commit failed")
        monkeypatch.setattr(db, "commit", failing_commit)
    return _break
