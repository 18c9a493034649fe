"""Smoke test for the bundled example."""

from examples.soft_delete_example import main


def test_soft_delete_example(capsys):
    assert main() == {"live": 1, "destroyed": 0, "total": 1}

    output = capsys.readouterr().out
    assert "Rejected: Validation failed for Patient" in output
