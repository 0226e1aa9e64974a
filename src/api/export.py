"""
Data export endpoints (CSV).
"""

import csv
import io
from typing import List, Optional

from fastapi import APIRouter, Query, Response

router = APIRouter(prefix="/api/export", tags=["Export"])


def generate_csv(headers: List[str], rows: List[List[str]]) -> str:
    """Generate CSV string from headers and rows"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


@router.get("/opportunities/csv")
async def export_opportunities_csv(
    min_net: Optional[float] = Query(default=None, description="Minimum net profit percentage"),
    type: Optional[str] = Query(default=None, pattern="^(triangle|cross)$", description="Strategy type"),
):
    """
    Export the latest scan's opportunities to CSV.

    Returns a downloadable CSV file, best net % first.
    """
    # Import here to avoid circular imports
    from dashboard import manager
    from src.core.opportunity import Opportunity

    if not manager.engine or not manager.engine.last_result:
        return Response(
            content="No scan available",
            media_type="text/plain",
            status_code=503,
        )

    result = manager.engine.last_result
    opportunities = result.opportunities
    if min_net is not None:
        opportunities = [o for o in opportunities if o.net_pct >= min_net]
    if type:
        opportunities = [o for o in opportunities if o.type.value == type]

    csv_content = generate_csv(
        Opportunity.csv_headers(),
        [o.to_csv_row() for o in opportunities],
    )

    filename = f"opportunities_{result.timestamp.strftime('%Y%m%d_%H%M%S')}.csv"

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
        },
    )
