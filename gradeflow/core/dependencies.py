from typing import Optional

from gradeflow.db.supabase import SupabaseRecordStore, create_supabase_client
from gradeflow.services.workspace import Workspace

_workspace: Optional[Workspace] = None


async def get_workspace() -> Workspace:
    """
    Dependency returning the process-wide workspace.

    The Supabase client is created and validated on first use.
    """
    global _workspace
    if _workspace is None:
        client = await create_supabase_client()
        _workspace = Workspace(SupabaseRecordStore(client))
    return _workspace
