# gamebot/logger.py
import logging

def setup_logger(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s"
    )
    # 롱폴링마다 찍히는 httpx 요청 로그는 숨김
    logging.getLogger("httpx").setLevel(logging.WARNING)
