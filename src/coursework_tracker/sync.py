import logging
from datetime import datetime
from typing import Dict, List, Any, Optional

from coursework_tracker.commit_source import CommitSource
from coursework_tracker.config_manager import AnalyticsSettings
from coursework_tracker.metrics import resolve_now
from coursework_tracker.models import Commit, Repository
from coursework_tracker.store import LocalStore

logger = logging.getLogger(__name__)


class CommitSyncer:
    def __init__(self, store: LocalStore, source: CommitSource, settings: Optional[AnalyticsSettings] = None):
        self.store = store
        self.source = source
        self.settings = settings or AnalyticsSettings()

    def to_commits(self, repo: Repository, records: List[Dict[str, Any]]) -> List[Commit]:
        commits = []
        for record in records:
            if not record.get("sha") or not record.get("date"):
                logger.debug("Skipping incomplete commit record in %s: %r", repo.full_name, record)
                continue
            commits.append(Commit(
                sha=record["sha"],
                repo_id=repo.id,
                author=record.get("author"),
                message=record.get("message"),
                commit_date=record["date"],
                lines_changed=record.get("lines_changed"),
            ))
        return commits

    def sync_repository(self, repo: Repository, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = resolve_now(now)
        records = self.source.fetch_commits(repo.owner, repo.repo_name, self.settings.sync_max_commits)
        commits = self.to_commits(repo, records)
        logger.info("Fetched %d commits for %s", len(commits), repo.full_name)

        chunk_size = self.settings.sync_chunk_size
        new_commits = 0
        for i in range(0, len(commits), chunk_size):
            new_commits += self.store.add_commits(commits[i:i + chunk_size])

        self.store.mark_synced(repo.id, now)
        return {
            "repository": repo.full_name,
            "status": "success",
            "fetched": len(commits),
            "new_commits": new_commits,
        }

    def sync_all(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = resolve_now(now)
        repositories = list(self.store.repositories)
        logger.info("Starting sync of %d repositories at %s", len(repositories), now.isoformat())

        results = []
        for repo in repositories:
            try:
                results.append(self.sync_repository(repo, now))
            except Exception as e:
                logger.warning("Error syncing %s: %s", repo.full_name, e)
                results.append({"repository": repo.full_name, "status": "error", "error": str(e)})

        failed = sum(1 for r in results if r["status"] == "error")
        summary = {
            "total": len(repositories),
            "synced": len(repositories) - failed,
            "failed": failed,
            "new_commits": sum(r.get("new_commits", 0) for r in results),
            "results": results,
        }
        logger.info("Sync completed: %d synced, %d failed, %d new commits",
                    summary["synced"], summary["failed"], summary["new_commits"])
        return summary
