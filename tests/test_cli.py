import pytest

from treasury_finsight import __version__
from treasury_finsight.cli import main


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Working directory with a config file and a small CSV data set."""
    data = tmp_path / "data" / "csv"
    data.mkdir(parents=True)
    (data / "movements.csv").write_text(
        "id,date,kind,status,amount_primary,amount_secondary,account_id,project_id,provider_id\n"
        "m1,2025-03-05,INGRESO,CONFIRMADO,1000,10,a1,p1,\n"
        "m2,2025-03-10,GASTO,CONFIRMADO,300,3,a1,p1,v1\n"
        "m3,2025-03-20,GASTO,PENDIENTE,900,,a1,,v1\n",
        encoding="utf-8",
    )
    (data / "accounts.csv").write_text(
        "id,name,type,current_balance,status\na1,Bank,bank,500,active\n",
        encoding="utf-8",
    )
    (data / "projects.csv").write_text("id,name,client_id\np1,Alpha,c1\n", encoding="utf-8")
    (data / "providers.csv").write_text("id,name\nv1,Vendor One\n", encoding="utf-8")
    (data / "clients.csv").write_text("id,name\nc1,Acme\n", encoding="utf-8")
    (tmp_path / "treasury_finsight_config.toml").write_text(
        '[data]\ncsv_dir = "data/csv"\n\n[logging]\nlevel = "WARNING"\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_version(capsys) -> None:
    main(["--version"])

    assert __version__ in capsys.readouterr().out


def test_kpis_table(project_dir, capsys) -> None:
    main(["kpis", "--year", "2025", "--month", "3"])

    out = capsys.readouterr().out
    assert "KPIs 2025-03 (ARS)" in out
    assert "700.0" in out


def test_kpis_by_month(project_dir, capsys) -> None:
    main(["kpis", "--mode", "year", "--year", "2025", "--by-month"])

    assert "2025-12" in capsys.readouterr().out


def test_top_providers_csv_output(project_dir, capsys) -> None:
    main(
        [
            "--today",
            "2025-03-15",
            "--display-mode",
            "csv",
            "--output",
            "out",
            "top-providers",
        ]
    )

    files = list((project_dir / "out").glob("top_providers_*.csv"))
    assert len(files) == 1
    assert "Vendor One" in files[0].read_text(encoding="utf-8")
    assert "Wrote" in capsys.readouterr().out


def test_liquidity_and_risk(project_dir, capsys) -> None:
    main(["--today", "2025-03-15", "liquidity", "--horizon", "10"])
    out = capsys.readouterr().out
    assert "Liquidity projection (ARS) 2025-03-16 -> 2025-03-25" in out
    assert "-400.0" in out

    main(["--today", "2025-03-15", "risk", "--horizon", "10"])
    assert "1/1 accounts at risk" in capsys.readouterr().out


def test_project_all_time(project_dir, capsys) -> None:
    main(["project", "p1", "--all-time"])

    out = capsys.readouterr().out
    assert "Project Alpha - all time" in out
    assert "700.0" in out


def test_invalid_month_exits_with_status_2(project_dir, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["kpis", "--year", "2025", "--month", "13"])

    assert exc_info.value.code == 2
    assert "error:" in capsys.readouterr().err


def test_unknown_currency_exits_with_status_2(project_dir) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--currency", "EUR", "ranking"])

    assert exc_info.value.code == 2


def test_missing_config_exits_with_status_2(tmp_path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--config", str(tmp_path / "missing.toml"), "kpis"])

    assert exc_info.value.code == 2


def test_no_command_exits_with_status_2(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 2
