"""Initial customer import"""

import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from hpg_ledger.domain.models import Customer
from hpg_ledger.infrastructure.database.serialization import parse_customers


def load_seed_customers(path: str) -> List[Customer]:
    """
    Read the seed customer list (JSON, stored-document format).

    An unreadable or malformed file yields no customers and a warning.
    """
    try:
        return parse_customers(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logging.warning(f"Could not load seed customers from {path}: {e}", extra={"seed_file": path})
        return []
