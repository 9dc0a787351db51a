"""
XRPL Yield DAO - APIサーバー起動スクリプト
gevent のモンキーパッチ適用後にアプリを組み立てて起動する。
"""
from gevent import monkey
monkey.patch_all()

from yield_dao.app import create_app
from yield_dao.config import Config
from yield_dao.utils.logger import get_logger

logger = get_logger("run_server")


def main():
    app = create_app(async_mode="gevent")
    socketio = app.extensions["socketio"]
    logger.info("""
    ======================================
      XRPL Yield DAO
      http://localhost:%d
    ======================================
    """, Config.PORT)
    socketio.run(app, host="0.0.0.0", port=Config.PORT, debug=Config.DEBUG)


if __name__ == "__main__":
    main()
