from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from typing import ClassVar, Optional

from degit.errors import ParseError, UnparsableReference, UnsupportedProvider


class Host:
    """
    Hosting provider of a repository. Closed set of variants:

      - GitHub()
      - GitLab(domain)   (self-hosted instances keep their own domain)
      - BitBucket()

    Each variant knows where its default-branch snapshot archive lives and in
    which format that archive is served.
    """

    name: ClassVar[str] = ""
    archive_format: ClassVar[str] = "tar.gz"

    def archive_url(self, owner: str, project: str) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class GitHub(Host):
    name: ClassVar[str] = "GitHub"

    def archive_url(self, owner: str, project: str) -> str:
        return f"https://github.com/{owner}/{project}/archive/HEAD.tar.gz"


@dataclass(frozen=True)
class GitLab(Host):
    name: ClassVar[str] = "GitLab"
    domain: str = "gitlab.com"

    def archive_url(self, owner: str, project: str) -> str:
        return f"https://{self.domain}/{owner}/{project}/repository/archive.tar.gz"


@dataclass(frozen=True)
class BitBucket(Host):
    name: ClassVar[str] = "BitBucket"
    archive_format: ClassVar[str] = "zip"

    def archive_url(self, owner: str, project: str) -> str:
        return f"https://bitbucket.org/{owner}/{project}/get/HEAD.zip"


@dataclass(frozen=True)
class RepositoryReference:
    host: Host
    owner: str
    project: str

    @property
    def archive_url(self) -> str:
        return self.host.archive_url(self.owner, self.project)

    def __str__(self) -> str:
        return f"{self.owner}/{self.project} from {self.host.name}"


# Owner and project: word characters and hyphens, no slashes or whitespace.
_NAME = r"[\w-]+"

_FULL_URL = re.compile(
    rf"""
    (?P<protocol>git@|https://)
    (?P<host>[\w.@-]+)
    [/:]
    (?P<owner>{_NAME})
    /
    (?P<project>{_NAME})
    (?:\.git)?/?
    """,
    re.VERBOSE,
)

_SHORT_FORM = re.compile(
    rf"""
    (?:(?P<host>[\w.-]*):)?
    (?P<owner>{_NAME})
    /
    (?P<project>{_NAME})
    """,
    re.VERBOSE,
)


def resolve(src: str) -> RepositoryReference:
    """
    Parse a human-typed repository reference.

    Accepted shapes (first match wins):
      https://github.com/owner/project[.git][/]
      git@gitlab.example.org:owner/project[.git]
      owner/project                 (GitHub)
      gitlab:owner/project          (gitlab.com)
      bitbucket:owner/project

    Raises:
        UnsupportedProvider: the host is not GitHub, GitLab or BitBucket.
        UnparsableReference: neither grammar matched.
    """
    s = (src or "").strip()

    m = _FULL_URL.fullmatch(s)
    if m:
        host = _host_from_token(m.group("host"), gitlab_domain=m.group("host"))
        return RepositoryReference(host, m.group("owner"), m.group("project"))

    m = _SHORT_FORM.fullmatch(s)
    if m:
        token = m.group("host")
        if token is None:
            host: Host = GitHub()
        else:
            host = _host_from_token(token)
        return RepositoryReference(host, m.group("owner"), m.group("project"))

    raise UnparsableReference(src)


def _host_from_token(token: str, gitlab_domain: Optional[str] = None) -> Host:
    # Substring containment: "www.github.com" and "gitlab.example.org" both match.
    if "github" in token:
        return GitHub()
    if "gitlab" in token:
        return GitLab(gitlab_domain or GitLab.domain)
    if "bitbucket" in token:
        return BitBucket()
    raise UnsupportedProvider(token)


def is_valid_source(src: str) -> str:
    """argparse ``type=`` hook: reject unusable references before any download starts."""
    try:
        resolve(src)
    except ParseError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return src
