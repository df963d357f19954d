from __future__ import annotations

from pathlib import Path

import pytest

SENSOR_CSV = """ Timestamp , FIT101 ,LIT101, MV101,P101,Normal/Attack
22/12/2015 04:00:02 PM,2.7,500.1,2,2,Normal
22/12/2015 04:00:00 PM,2.5,500.0,2,2,Normal
22/12/2015 04:00:01 PM,2.6,500.2,2,1,Attack
not a timestamp,1,1,1,1,Normal
22/12/2015 04:00:03 PM,bad,500.3,2,2,Normal
"""

ATTACK_CSV = """Attack #,Start Time,End Time,Attack Point,Attack
2,22/12/2015 16:00:01,16:00:01,FIT-101,Spoof flow reading
1,28/12/2015 10:29:14,10:44:53,MV-101;P-102,Open MV-101
3,,,P-101,Missing times
"""


@pytest.fixture()
def dataset_dir(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    root.mkdir()
    (root / "SWaT_Dataset.csv").write_text(SENSOR_CSV, encoding="utf-8")
    (root / "Attack.csv").write_text(ATTACK_CSV, encoding="utf-8")
    return root
