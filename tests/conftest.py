from __future__ import annotations

import pytest

from discipline_metrics import data
from discipline_metrics.data import parse_rows

HEADER = "Year,Student Group, Percent of Students Disciplined,Students Disciplined\n"

SAMPLE_CSV = HEADER + "\n".join(
    [
        "2021-22,All Students,4.20,2310",
        "2021-22,Afr. Amer./Black,5.65,410",
        "2021-22,Hispanic/Latino,4.80,520",
        "2021-22,White,3.90,1100",
        "2021-22,Asian,1.20,40",
        "2021-22,Students w/disabilities,7.57,690",
        "2021-22,Male,5.60,1560",
        "2021-22,Female,2.90,750",
        "2022-23,All Students,3.90,2150",
        "2022-23,Afr. Amer./Black,5.10,380",
        "2022-23,Hispanic/Latino,4.40,495",
        "2022-23,White,3.60,1010",
        "2022-23,Asian,1.00,35",
        "2022-23,Students w/disabilities,6.80,640",
        "2022-23,Male,5.10,1440",
        "2022-23,Female,2.70,710",
        "2023-24,All Students,3.45,1905",
        "2023-24,Afr. Amer./Black,5.14,352",
        "2023-24,Hispanic/Latino,4.10,460",
        "2023-24,White,3.20,905",
        "2023-24,Asian,0.85,30",
        "2023-24,Students w/disabilities,6.19,590",
        "2023-24,Male,4.44,1250",
        "2023-24,Female,2.43,655",
    ]
) + "\n"


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def sample_rows():
    return parse_rows(SAMPLE_CSV)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the default data location at a temporary directory."""
    monkeypatch.setattr(data, "DATA_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def data_file(data_dir):
    path = data_dir / data.DEFAULT_FILE_NAME
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
