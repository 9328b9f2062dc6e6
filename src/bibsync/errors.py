"""Error kinds raised by the synchronization job.

Nothing inside the job catches these: every one of them aborts the run and is
reported by the command-line entry point.
"""

from __future__ import annotations


class BibSyncError(RuntimeError):
    """Base class for every failure the sync job reports to the operator."""


class SourceUnavailable(BibSyncError):
    """The Zotero API could not be reached or answered with a non-2xx status."""


class MalformedResponse(BibSyncError):
    """A Zotero response lacked an expected field or header."""


class IndexOperationFailed(BibSyncError):
    """Elasticsearch rejected an index lifecycle call or a bulk write."""
