import logging
from datetime import timezone
from typing import Dict, List, Any, Optional
from urllib.parse import urlparse

import git
from github import Auth, Github, GithubException, RateLimitExceededException

logger = logging.getLogger(__name__)


def parse_repo_url(repo_url: str) -> Optional[Dict[str, str]]:
    parsed_url = urlparse(repo_url)
    if parsed_url.netloc not in ("github.com", "www.github.com"):
        return None

    path_parts = [part for part in parsed_url.path.split("/") if part]
    if len(path_parts) < 2:
        return None

    repo_name = path_parts[1]
    if repo_name.endswith(".git"):
        repo_name = repo_name[:-4]
    return {"owner": path_parts[0], "repo_name": repo_name}


class CommitSource:
    """Supplies commit records for one repository, newest first."""

    def fetch_commits(self, owner: str, repo_name: str, max_count: int = 300) -> List[Dict[str, Any]]:
        raise NotImplementedError


class GitHubCommitSource(CommitSource):
    def __init__(self, token: Optional[str] = None, per_page: int = 100, client: Optional[Github] = None,
                 fetch_stats: bool = False):
        self.per_page = per_page
        # line stats cost one extra request per commit
        self.fetch_stats = fetch_stats
        if client is not None:
            self.github = client
        elif token:
            self.github = Github(auth=Auth.Token(token), per_page=per_page)
        else:
            self.github = Github(per_page=per_page)

    def fetch_commits(self, owner, repo_name, max_count=300):
        """Page through the commit list; on any failure return what was already fetched."""
        results: List[Dict[str, Any]] = []
        full_name = f"{owner}/{repo_name}"

        try:
            paginated = self.github.get_repo(full_name).get_commits()
            page_index = 0
            while len(results) < max_count:
                page = paginated.get_page(page_index)
                for commit in page:
                    if len(results) >= max_count:
                        break
                    results.append(self._to_record(commit))
                if len(page) < self.per_page:
                    break
                page_index += 1
        except RateLimitExceededException:
            logger.warning("GitHub rate limit exceeded while fetching %s; returning %d commits",
                           full_name, len(results))
        except GithubException as e:
            message = e.data.get("message", str(e)) if isinstance(e.data, dict) else str(e)
            logger.warning("GitHub API error for %s (status %s): %s; returning %d commits",
                           full_name, e.status, message, len(results))
        except Exception as e:
            logger.warning("Unexpected error fetching %s: %s; returning %d commits",
                           full_name, e, len(results))

        return results[:max_count]

    def _to_record(self, commit) -> Dict[str, Any]:
        author = commit.commit.author
        commit_date = author.date if author else None
        if commit_date is not None and commit_date.tzinfo is None:
            commit_date = commit_date.replace(tzinfo=timezone.utc)

        record = {
            "sha": commit.sha,
            "author": author.name if author else None,
            "date": commit_date,
            "message": commit.commit.message,
        }
        if self.fetch_stats:
            record["lines_changed"] = commit.stats.total if commit.stats else None
        return record

    def check_token_validity(self) -> Dict[str, Any]:
        try:
            user = self.github.get_user()
            return {"valid": True, "username": user.login}
        except GithubException as e:
            if e.status in (401, 403):
                return {"valid": False, "error": "Invalid or expired token"}
            return {"valid": False, "error": f"GitHub API error: {e.status}"}


class LocalGitCommitSource(CommitSource):
    """Reads commits from local clones laid out as ``<root>/<owner>/<repo_name>``."""

    def __init__(self, root: str):
        self.root = root

    def fetch_commits(self, owner, repo_name, max_count=300):
        repo = git.Repo(f"{self.root}/{owner}/{repo_name}")
        results = []
        for commit in repo.iter_commits(max_count=max_count):
            results.append({
                "sha": commit.hexsha,
                "author": commit.author.name,
                "date": commit.committed_datetime,
                "message": commit.message.strip(),
                "lines_changed": commit.stats.total.get("lines", 0),
            })
        return results
