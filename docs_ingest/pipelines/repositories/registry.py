"""Registry of known repositories grouped by domain."""

import logging
from typing import Dict, List, Optional

from .models import DomainRepositoryConfig, RepositoryConfig

logger = logging.getLogger(__name__)


class RepositoryRegistry:
    """Domain-keyed repository configuration; owner/name is unique within a domain."""

    def __init__(self, initial_configs: Optional[List[DomainRepositoryConfig]] = None):
        self._domains: Dict[str, List[RepositoryConfig]] = {}
        for domain_config in initial_configs or []:
            self.add_domain(domain_config)

    def add_domain(self, domain_config: DomainRepositoryConfig) -> None:
        """Add a domain, merging into an existing one without duplicating repositories."""
        existing = self._domains.setdefault(domain_config.domain, [])
        for repository in domain_config.repositories:
            if not any(repo.matches(repository.owner, repository.name) for repo in existing):
                existing.append(repository)

    def add_repository(self, repository: RepositoryConfig) -> None:
        repositories = self._domains.setdefault(repository.domain, [])
        if any(repo.matches(repository.owner, repository.name) for repo in repositories):
            logger.debug(f"Repository {repository.repository_id} already registered")
            return
        repositories.append(repository)

    def get_repositories_for_domain(self, domain: str) -> List[RepositoryConfig]:
        return list(self._domains.get(domain, []))

    def get_domains(self) -> List[str]:
        return list(self._domains.keys())

    def find_repository(self, owner: str, name: str) -> Optional[RepositoryConfig]:
        for repositories in self._domains.values():
            for repo in repositories:
                if repo.matches(owner, name):
                    return repo
        return None

    def remove_repository(self, owner: str, name: str) -> None:
        """Remove the first matching repository from whichever domain holds it."""
        for repositories in self._domains.values():
            for index, repo in enumerate(repositories):
                if repo.matches(owner, name):
                    del repositories[index]
                    return

    def get_all_repositories(self) -> List[RepositoryConfig]:
        return [repo for repositories in self._domains.values() for repo in repositories]
