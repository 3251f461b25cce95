"""Google Cloud client construction shared by the Datastore and Firestore stores."""
from __future__ import annotations
from typing import Optional

from pydantic import Field

from kvshim_lib.storage.options import StoreOptions


class GCPOptions(StoreOptions):
    # Required.
    project_id: str = Field(min_length=1)
    # Service account JSON key file. Without it Application Default
    # Credentials are used.
    credentials_file: Optional[str] = None
    # Seconds per request.
    timeout: float = Field(default=2.0, gt=0)


def make_client(client_cls, options: GCPOptions):
    if options.credentials_file:
        return client_cls.from_service_account_json(options.credentials_file, project=options.project_id)
    return client_cls(project=options.project_id)
