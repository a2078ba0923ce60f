"""데이터베이스 초기화 스크립트 (수익 테이블 생성)

사용법:
    python scripts/init_db.py                  # 설정된 DB (DATABASE_URL / secrets / 로컬 SQLite)
    python scripts/init_db.py --db dev.db      # 지정한 SQLite 파일 또는 URL
"""
import sys
import argparse
from pathlib import Path

# 프로젝트 루트를 파이썬 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv(project_root / ".env")

from creator_earnings.database import Base, get_engine_for_db, init_db


def main():
    """DB 테이블 생성"""
    parser = argparse.ArgumentParser(description="수익 테이블 생성")
    parser.add_argument("--db", type=str, default=None, help="SQLite 경로 또는 DB URL (기본: 설정값)")
    args = parser.parse_args()

    engine = get_engine_for_db(args.db)
    print(f"Initializing database: {engine.url}")

    # 모든 테이블 생성
    init_db(bind=engine)

    print("Database tables created successfully!")
    print("\nCreated tables:")
    for table in Base.metadata.sorted_tables:
        print(f"  - {table.name}")


if __name__ == "__main__":
    main()
