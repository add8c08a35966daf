"""
SCRY Search Provider
EA Forum / LessWrong 帖子检索
使用 SCRY SQL 查询接口, 无 Key 时使用公开只读 Key
"""
import math
from typing import List, Optional, Sequence
import logging

import httpx

from .base import BaseSearchProvider, dedupe_hits
from models import ProviderName, ProviderResult, SearchHit
from utils.exceptions import ProviderError


logger = logging.getLogger(__name__)


SCRY_TABLES = ("mv_eaforum_posts", "mv_lesswrong_posts")


def build_scry_sql(query: str, table: str, limit: int) -> str:
    """构造 SCRY 查询语句 (单引号转义)"""
    escaped = query.replace("'", "''")
    return (
        f"SELECT title, uri, snippet FROM scry.search('{escaped}', '{table}') "
        f"WHERE title IS NOT NULL AND kind = 'post' LIMIT {limit}"
    )


class ScryProvider(BaseSearchProvider):
    """
    SCRY 适配器

    特性:
    - 每个内容表一次查询, 每表上限 ceil(max_results / 表数)
    - 单表失败不影响其他表
    - 适配器内部按 URL 去重
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        tables: Sequence[str] = SCRY_TABLES,
    ):
        super().__init__(api_key=api_key, client=client)
        self._scry_settings = self.settings.scry
        self.api_key = api_key or self._scry_settings.public_key
        self.timeout = self._scry_settings.timeout
        self.tables = tuple(tables)

    @property
    def provider(self) -> ProviderName:
        return ProviderName.SCRY

    @property
    def name(self) -> str:
        return "SCRY"

    async def _search(self, query: str, max_results: int) -> ProviderResult:
        if not self.tables:
            return ProviderResult(provider=self.provider)

        per_table = math.ceil(max_results / len(self.tables))
        hits: List[SearchHit] = []

        for table in self.tables:
            try:
                hits.extend(await self._query_table(query, table, per_table))
            except Exception as e:
                self._log_failure(f"Table {table} query failed", e)

        return ProviderResult(provider=self.provider, hits=dedupe_hits(hits)[:max_results])

    async def _query_table(self, query: str, table: str, limit: int) -> List[SearchHit]:
        response = await self._post(
            self._scry_settings.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "text/plain",
            },
            content=build_scry_sql(query, table, limit),
        )
        if response.status_code >= 400:
            raise ProviderError(f"SCRY API error {response.status_code}", source=self.name, table=table)

        data = response.json()
        rows = (data.get("rows") or []) if isinstance(data, dict) else []

        hits = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            title = row.get("title")
            uri = row.get("uri")
            if not title or not uri:
                continue
            hits.append(self._hit(url=uri, title=title, snippet=row.get("snippet")))
        return hits
