"""
Catdex — Static Files with Directory Listing
==============================================

What:  StaticFiles that renders an HTML index for directory paths.
Why:   /static and /image are browsable; plain StaticFiles only serves files.
"""

import html
import os
import stat
from urllib.parse import quote

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import URL
from starlette.responses import HTMLResponse, RedirectResponse, Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope


class ListingStaticFiles(StaticFiles):
    async def get_response(self, path: str, scope: Scope) -> Response:
        if scope["method"] in ("GET", "HEAD"):
            try:
                full_path, stat_result = await run_in_threadpool(self.lookup_path, path)
            except OSError:
                stat_result = None
            if stat_result is not None and stat.S_ISDIR(stat_result.st_mode):
                url = URL(scope=scope)
                if not url.path.endswith("/"):
                    return RedirectResponse(url=url.replace(path=url.path + "/"))
                body = await run_in_threadpool(_render_listing, full_path, url.path)
                return HTMLResponse(body)
        return await super().get_response(path, scope)


def _render_listing(directory: str, url_path: str) -> str:
    entries = []
    with os.scandir(directory) as it:
        for entry in sorted(it, key=lambda e: e.name):
            if entry.name.startswith("."):
                continue
            name = entry.name + ("/" if entry.is_dir() else "")
            entries.append(f'<li><a href="{quote(name)}">{html.escape(name)}</a></li>')

    title = html.escape(f"Index of {url_path}")
    return (
        f"<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title>{title}</title></head>"
        f"<body><h1>{title}</h1><ul>{''.join(entries)}</ul></body></html>"
    )
