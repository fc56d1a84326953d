"""
Cache key management.

Centralized cache key definitions to:
- Prevent key collisions between configuration and result entries
- Enable prefix-based invalidation
- Document cache structure
"""

import hashlib
import json
from typing import Optional

from triage.models import EnhancedClassificationConfig, IssueInput, RepositoryContext


class CacheKeys:
    """
    Centralized cache key definitions.

    Naming convention: {domain}:{segment}:{segment}...

    Examples:
        - config:octo:hello-world:strict -> Effective config for a repo and profile
        - profile:strict -> Parsed configuration profile
        - result:42:1f3a...:octo/hello-world:2.0.0:9b0c...:default@1.0.0 -> Classification
    """

    # Prefixes for different domains
    PREFIX_CONFIG = "config"
    PREFIX_PROFILE = "profile"
    PREFIX_RESULT = "result"

    # TTLs (in seconds)
    TTL_CONFIG = 60 * 5       # 5 minutes
    TTL_RESULT = 60 * 60      # 1 hour

    @staticmethod
    def config_key(
        owner: Optional[str] = None,
        repo: Optional[str] = None,
        profile_id: Optional[str] = None,
    ) -> str:
        """Cache key for a loaded configuration. Absent segments are omitted."""
        parts = [CacheKeys.PREFIX_CONFIG] + [part for part in (owner, repo, profile_id) if part]
        return ":".join(parts)

    @staticmethod
    def profile_key(profile_id: str) -> str:
        """Cache key for a parsed profile document."""
        return f"{CacheKeys.PREFIX_PROFILE}:{profile_id}"

    @staticmethod
    def content_digest(issue: IssueInput) -> str:
        """Hash of everything in the issue that can change its classification."""
        canonical = json.dumps(issue.to_document(), sort_keys=True, separators=(",", ":"))
        return hashlib.md5(canonical.encode()).hexdigest()[:16]

    @staticmethod
    def fingerprint(
        issue: IssueInput,
        config: EnhancedClassificationConfig,
        repository_context: Optional[RepositoryContext] = None,
    ) -> str:
        """
        Cache key for a classification result.

        Changes whenever the issue content, repository, configuration contents
        or scoring algorithm change.
        """
        issue_part = str(issue.id) if issue.id is not None else "anon"
        repo_part = repository_context.slug if repository_context else "-"
        return ":".join(
            [
                CacheKeys.PREFIX_RESULT,
                issue_part,
                CacheKeys.content_digest(issue),
                repo_part,
                config.version,
                config.digest(),
                config.algorithm_version,
            ]
        )

    # Pattern keys for bulk invalidation
    @staticmethod
    def result_pattern() -> str:
        """Pattern to match all classification result keys."""
        return f"{CacheKeys.PREFIX_RESULT}:*"
