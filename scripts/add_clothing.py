from __future__ import annotations

import asyncio
import mimetypes
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from app.clients.api import ClosetClient
from app.clients.notices import error_notice, item_added_notice
from app.core.config import settings
from app.core.errors import ClosetError

load_dotenv()


async def _run(base_url: str, token: str, category: str, path: Path) -> int:
    content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    async with ClosetClient(base_url, token) as client:
        try:
            item = await client.upload_clothing(path.name, path.read_bytes(), content_type, category)
        except ClosetError as e:
            notice = error_notice(e, default="Failed to upload item")
            print(f"{notice.level}: {notice.message}")
            return 1
    notice = item_added_notice()
    print(f"{notice.level}: {notice.message}")
    print(f"  {item['color']} {item['subcategory']} ({', '.join(item['season'])}) id={item['id']}")
    return 0


if __name__ == "__main__":
    token = os.getenv("CLOSET_TOKEN", "")
    if len(sys.argv) != 3 or not token:
        print("usage: CLOSET_TOKEN=... python3 scripts/add_clothing.py <category> <image_path>")
        sys.exit(1)
    base = os.getenv("CLOSET_API_URL", f"http://localhost:8000{settings.API_PREFIX}")
    sys.exit(asyncio.run(_run(base, token, sys.argv[1], Path(sys.argv[2]))))
