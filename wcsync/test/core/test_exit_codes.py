from wcsync.core.errors import ExitCode


def test_exit_code_values_are_stable() -> None:
    assert int(ExitCode.OK) == 0
    assert int(ExitCode.SYNC_FAILED) == 1
