from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from app.core.config import settings

DATABASE_URL = settings.DATABASE_URL

engine = create_async_engine(DATABASE_URL, echo=not settings.TESTING, future=True)

# Create sessionmaker bound to the async engine
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Dependency function for FastAPI routes
async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session

# Initialize DB (run this at app startup)
async def init_db(bind=None):
    import app.models.claim_db  # Ensure models are imported so metadata is available
    async with (bind or engine).begin() as conn:
        await conn.run_sync(app.models.claim_db.Base.metadata.create_all)
