import logging
import os

from yield_dao.utils.logger import get_logger


def test_component_loggers_share_package_handlers():
    first = get_logger("StakeLedger")
    second = get_logger("TallyEngine")
    root = logging.getLogger("yield_dao")

    assert first.name == "yield_dao.StakeLedger"
    assert first.parent is root and second.parent is root
    assert first.handlers == [] and len(root.handlers) == 2


def test_log_file_is_written_under_configured_dir():
    root = logging.getLogger("yield_dao")
    get_logger("LoggerTest").info("ログ出力テスト")

    file_handler = next(h for h in root.handlers if hasattr(h, "baseFilename"))
    file_handler.flush()

    assert os.path.dirname(file_handler.baseFilename) == os.path.abspath(
        os.environ["YIELD_DAO_LOG_DIR"]
    )
    with open(file_handler.baseFilename, encoding="utf-8") as f:
        assert "ログ出力テスト" in f.read()
