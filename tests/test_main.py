import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import main


def run(tmp_path, capsys, rows):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text('\n'.join(["type, client, tx, amount"] + rows))

    exit_code = main([str(csv_file)])
    captured = capsys.readouterr()
    assert exit_code == 0
    return captured.out.splitlines()[1:], captured.err


class TestMain:
    def test_scenario_single_deposit(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, ["deposit, 1, 1, 5.0"])
        assert rows == ["1,5.0000,0.0000,5.0000,false"]

    def test_scenario_deposit_withdrawal(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 5.0",
            "withdrawal, 1, 2, 3.0",
        ])
        assert rows == ["1,2.0000,0.0000,2.0000,false"]

    def test_scenario_dispute(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 5.0",
            "dispute, 1, 1,",
        ])
        assert rows == ["1,0.0000,5.0000,5.0000,false"]

    def test_scenario_dispute_after_withdrawal(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 5.0",
            "withdrawal, 1, 2, 5.0",
            "dispute, 1, 1,",
        ])
        assert rows == ["1,0.0000,0.0000,0.0000,false"]

    def test_scenario_chargeback_locks(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 5.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 3, 10.0",
        ])
        assert rows == ["1,0.0000,0.0000,0.0000,true"]

    def test_scenario_unknown_dispute_creates_account(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, ["dispute, 1, 99,"])
        assert rows == ["1,0.0000,0.0000,0.0000,false"]

    def test_basic_transactions(self, tmp_path, capsys):
        rows, err = run(tmp_path, capsys, [
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ])

        assert rows == [
            "1,1.5000,0.0000,1.5000,false",
            "2,2.0000,0.0000,2.0000,false",
        ]
        assert "Processed: 4, Ignored: 1, insufficient_funds: 1" in err

    def test_output_in_first_seen_order(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 9, 1, 1",
            "deposit, 3, 2, 1",
            "deposit, 9, 3, 1",
        ])
        assert [row.split(",")[0] for row in rows] == ["9", "3"]

    def test_decimal_precision(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 1.2345",
            "deposit, 1, 2, 0.0001",
            "withdrawal, 1, 3, 0.2346",
        ])
        # 1.2345 + 0.0001 - 0.2346 = 1.0000
        assert rows == ["1,1.0000,0.0000,1.0000,false"]

    def test_large_amounts(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 10000000000000000000000000",
            "deposit, 1, 2, 79228162514264337593543950335",
            "dispute, 1, 1,",
        ])
        assert rows == [
            "1,79228162514264337593543950335.0000,10000000000000000000000000.0000,79238162514264337593543950335.0000,false",
        ]

    def test_malformed_rows_do_not_stop_processing(self, tmp_path, capsys):
        rows, _ = run(tmp_path, capsys, [
            "deposit, 1, 1, 1.0",
            "bogus, 1, 2, 1.0",
            "deposit, 1, not-a-number, 1.0",
            "deposit, 1, 3, 2.0",
        ])
        assert rows == ["1,3.0000,0.0000,3.0000,false"]

    def test_usage_error(self, capsys):
        assert main([]) == 1
        assert "Usage" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR, logger="main"):
            assert main([str(tmp_path / "missing.csv")]) == 1
        assert "Cannot read" in caplog.text
