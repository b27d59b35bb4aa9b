"""
Team Directory - auto-fill lookup from a CSV roster

Expected header: teamNumber,teamName,teamLeader

The file is re-read whenever its modification time changes, so organisers
can edit the roster while the server runs.
"""

import csv
import io
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import aiofiles.os

from hackportal.core.logging_config import logger

EXPECTED_HEADER = ["teamnumber", "teamname", "teamleader"]


@dataclass
class TeamEntry:
    teamNumber: str
    teamName: str
    teamLeader: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def parse_roster(content: str) -> Dict[str, TeamEntry]:
    """Parse roster CSV text; short rows and rows without a team number are skipped"""
    rows = [row for row in csv.reader(io.StringIO(content)) if any(cell.strip() for cell in row)]
    if not rows:
        return {}

    header, body = rows[0], rows[1:]
    if [cell.strip().lower() for cell in header] != EXPECTED_HEADER:
        logger.warning(f"teams CSV header mismatch. Expected: teamNumber,teamName,teamLeader Got: {','.join(header)}")

    teams: Dict[str, TeamEntry] = {}
    for row in body:
        if len(row) < 3:
            continue
        team_number = row[0].strip()
        if not team_number:
            continue
        teams[team_number] = TeamEntry(
            teamNumber=team_number,
            teamName=row[1].strip(),
            teamLeader=row[2].strip(),
        )
    return teams


class TeamDirectory:
    def __init__(self, csv_path: Path):
        self.csv_path = Path(csv_path)
        self._teams: Dict[str, TeamEntry] = {}
        self._mtime: Optional[float] = None
        self._missing_logged = False

    async def load(self) -> int:
        """(Re)load the roster; returns the number of teams known"""
        try:
            stat = await aiofiles.os.stat(self.csv_path)
        except FileNotFoundError:
            if not self._missing_logged:
                logger.warning(f"{self.csv_path} not found, team auto-fill disabled")
                self._missing_logged = True
            self._teams = {}
            self._mtime = None
            return 0

        try:
            async with aiofiles.open(self.csv_path, "r", encoding="utf-8-sig") as f:
                content = await f.read()
        except OSError as e:
            logger.error(f"Failed to load {self.csv_path}: {e}")
            self._teams = {}
            return 0

        self._teams = parse_roster(content)
        self._mtime = stat.st_mtime
        self._missing_logged = False
        logger.info(f"Loaded {len(self._teams)} teams from {self.csv_path}")
        return len(self._teams)

    async def _refresh(self) -> None:
        try:
            mtime = (await aiofiles.os.stat(self.csv_path)).st_mtime
        except FileNotFoundError:
            mtime = None
        if mtime != self._mtime:
            if mtime is not None:
                logger.info(f"Detected change in {self.csv_path}, reloading")
            await self.load()

    async def all(self) -> List[TeamEntry]:
        await self._refresh()
        return list(self._teams.values())

    async def get(self, team_number: str) -> Optional[TeamEntry]:
        await self._refresh()
        return self._teams.get(str(team_number).strip())

    def __len__(self) -> int:
        return len(self._teams)
