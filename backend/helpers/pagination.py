"""
Standardized pagination parameters for list endpoints.
"""

from typing import Annotated

from fastapi import Query

PaginationSkip = Annotated[int, Query(ge=0, description="Number of records to skip")]
PaginationLimit = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]

# Admin listings and post threads
PaginationLimitLarge = Annotated[
    int, Query(ge=1, le=200, description="Maximum number of records to return")
]
