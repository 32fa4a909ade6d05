"""Repository gateway.

This module provides the gateway over the version-control backend used by
snapshot publishing and tag backfill.

Import from submodules:
- abc: RepositoryGateway
- real: RealRepositoryGateway
- fake: FakeRepositoryGateway
- dry_run: DryRunRepositoryGateway
- types: CommitSummary, RefPushed, RefPushRejected, RefPushFailed
"""
