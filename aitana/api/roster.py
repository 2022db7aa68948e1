from fastapi import APIRouter, Depends

from aitana.api.deps import get_sheets
from aitana.config import ROSTER_SHEET_RANGE
from aitana.integrations.google import SheetsClient

router = APIRouter(tags=["Roster"])


@router.get("/roster")
async def roster(sheets: SheetsClient = Depends(get_sheets)):
    artists = await sheets.get_roster(ROSTER_SHEET_RANGE)
    return {"artists": [a.to_dict() for a in artists]}
