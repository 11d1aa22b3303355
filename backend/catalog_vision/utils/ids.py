"""
Run ids correlating the log lines of one analysis or training run.
"""
import uuid
from datetime import datetime


def generate_run_id(prefix: str = "ana") -> str:
    """
    Unique id such as ``ana-20240131120000-1a2b3c4d``.
    
    Args:
        prefix: Run type, "ana" for analysis or "trn" for training
    """
    return f"{prefix}-{datetime.now():%Y%m%d%H%M%S}-{uuid.uuid4().hex[:8]}"
