import os
import dotenv
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

dotenv.load_dotenv()

# For asynchronous operations
ASYNC_DATABASE_URL = os.getenv("DATABASE_URL")
if not ASYNC_DATABASE_URL:
    raise ValueError("No DATABASE_URL environment variable set for async connection")

engine_options = {
    "pool_pre_ping": True,  # 接続の有効性を事前確認
    "echo": False,          # 本番環境ではSQLログを無効化
}
if not ASYNC_DATABASE_URL.startswith("sqlite"):
    # SQLiteはプールサイズ指定を受け付けないためサーバーDBのみ設定
    engine_options.update(
        pool_size=20,       # 同時接続数を増やす
        max_overflow=30,    # プールサイズを超えた場合の追加接続数
        pool_recycle=3600,  # 1時間後に接続を再利用
    )

async_engine = create_async_engine(ASYNC_DATABASE_URL, **engine_options)
AsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=async_engine,
)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
