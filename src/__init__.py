"""
CNG Transforms
==============

HMAC и симметричные шифры поверх криптографического движка в стиле
Windows CNG (BCrypt): дескрипторы алгоритмов, строковые свойства,
потоковые преобразования.

Этот пакет предоставляет:
    - HMAC-SHA256/384/512 с потоковым вводом и повторным использованием
    - Адаптеры AES и Camellia (CBC, ECB, CFB, CTR)
    - Схемы паддинга PKCS7, ANSI X9.23, ISO 10126, ZEROS, NONE
    - Генерацию ключей и IV из общего CSPRNG

Пример базового использования:
    >>> from src.security.cng import AES, HMACSHA384
    >>>
    >>> aes = AES()
    >>> ciphertext = aes.encrypt(b"secret payload")
    >>> mac = HMACSHA384(aes.key).compute_hash(ciphertext)
    >>> len(mac)
    48

Управление конфигурацией:
    >>> import os
    >>> os.environ['CNG_LOG_LEVEL'] = 'DEBUG'
    >>>
    >>> from src import load_config
    >>> from src.security.cng.config import SymmetricConfig
    >>>
    >>> cfg = SymmetricConfig.from_mapping(load_config())
    >>> cfg.mode
    <ChainingMode.CBC: 'cbc'>

Версия: 0.1.0
Лицензия: MIT
Python: 3.11+
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__description__ = "CNG-style HMAC and symmetric cipher transforms"
__license__ = "MIT"
__python_requires__ = ">=3.11"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# =============================================================================
# ПРОВЕРКА ВЕРСИИ PYTHON
# =============================================================================

if sys.version_info < (3, 11):
    raise RuntimeError(
        f"CNG Transforms требует Python 3.11 или выше. "
        f"Текущая версия: {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro}"
    )

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

_ROOT_LOGGER_NAME = __name__

_LOG_LEVELS: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _setup_logging() -> None:
    """
    Инициализировать общепакетную конфигурацию логирования.

    Настраивает логгер пакета с:
    - Консольным обработчиком (stderr) для WARNING и выше
    - Ротирующим файловым обработчиком, если задана переменная
      окружения CNG_LOG_DIR

    Уровень логирования задаётся переменной окружения CNG_LOG_LEVEL
    (DEBUG, INFO, WARNING, ERROR, CRITICAL). Функция идемпотентна.
    """
    log_level = _LOG_LEVELS.get(os.environ.get("CNG_LOG_LEVEL", "INFO").upper(), logging.INFO)

    root_logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if root_logger.handlers:
        return

    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        fmt=("[%(asctime)s] %(levelname)-8s " "[%(name)s.%(funcName)s:%(lineno)d] %(message)s"),
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir_env = os.environ.get("CNG_LOG_DIR")
    if log_dir_env:
        try:
            log_dir = Path(log_dir_env)
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / "cng.log",
                maxBytes=10 * 1024 * 1024,  # 10 МБ
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(
                f"Не удалось инициализировать файловое логирование: {e}. "
                f"Используется только консоль."
            )

    root_logger.propagate = False


def get_logger(module_name: str) -> logging.Logger:
    """
    Получить логгер в пространстве имён пакета.

    Аргументы:
        module_name: Обычно `__name__` вызывающего модуля.

    Возвращает:
        logging.Logger с именем 'src.<module_name>'.

    Пример:
        >>> get_logger("security.cng.hmac").name
        'src.security.cng.hmac'
        >>> get_logger("__main__").name
        'src.main'
    """
    if module_name == _ROOT_LOGGER_NAME or module_name.startswith(f"{_ROOT_LOGGER_NAME}."):
        full_name = module_name
    elif module_name == "__main__":
        full_name = f"{_ROOT_LOGGER_NAME}.main"
    else:
        full_name = f"{_ROOT_LOGGER_NAME}.{module_name.lstrip('.')}"

    return logging.getLogger(full_name)


# =============================================================================
# УПРАВЛЕНИЕ КОНФИГУРАЦИЕЙ
# =============================================================================

# Значения конфигурации по умолчанию
_DEFAULT_CONFIG: Dict[str, Any] = {
    "default_mode": "cbc",
    "default_padding": "pkcs7",
    "default_provider": "Microsoft Primitive Provider",
    "log_level": "INFO",
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Загрузить конфигурацию из config.json поверх значений по умолчанию.

    Если файл отсутствует или повреждён, возвращаются значения по
    умолчанию, а проблема записывается в лог.

    Ключи конфигурации:
        - default_mode: str - Режим сцепления (cbc, ecb, cfb, ctr)
        - default_padding: str - Паддинг (pkcs7, none, zeros, ansi_x923, iso_10126)
        - default_provider: str - Имя провайдера алгоритмов
        - log_level: str - Уровень логирования

    Аргументы:
        config_path: Путь к файлу. Если None, ищет 'config.json' в
                    текущем каталоге.

    Возвращает:
        Словарь со всеми ключами по умолчанию, перекрытыми
        пользовательскими значениями. Передаётся в
        SymmetricConfig.from_mapping().
    """
    logger = get_logger(__name__)

    if config_path is None:
        config_path = Path("config.json")

    config = _DEFAULT_CONFIG.copy()

    if not config_path.exists():
        logger.info(
            f"Файл конфигурации {config_path} не найден. "
            f"Используется конфигурация по умолчанию."
        )
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)

        if not isinstance(user_config, dict):
            raise ValueError(
                f"Файл конфигурации должен содержать JSON-объект, "
                f"получен {type(user_config).__name__}"
            )

        config.update(user_config)
        logger.info(f"Конфигурация загружена из {config_path}")
        logger.debug(f"Конфигурация: {config}")

    except json.JSONDecodeError as e:
        logger.warning(
            f"Не удалось разобрать {config_path}: Недопустимый JSON "
            f"в строке {e.lineno}, столбце {e.colno}. "
            f"Используется конфигурация по умолчанию."
        )
    except OSError as e:
        logger.warning(
            f"Не удалось прочитать {config_path}: {e}. "
            f"Используется конфигурация по умолчанию."
        )
    except ValueError as e:
        logger.warning(
            f"Недопустимый формат конфигурации: {e}. "
            f"Используется конфигурация по умолчанию."
        )

    return config


# =============================================================================
# ИНИЦИАЛИЗАЦИЯ ПАКЕТА
# =============================================================================

_setup_logging()

__all__ = [
    "__version__",
    "get_logger",
    "load_config",
]
