# log_config.py
import logging
import os
from typing import Optional, Union

LOG_LEVEL_ENV = "DISSONANCE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def resolve_log_level(level: Union[int, str, None] = None) -> int:
    """
    Resolve o nível de logging a partir de um valor explícito ou do ambiente.

    Aceita nomes de nível ("debug", "INFO") ou níveis numéricos. Nomes
    desconhecidos ficam em INFO.
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_root_logger(level: Union[int, str, None] = None,
                          fmt: Optional[str] = None) -> None:
    """
    Configura o root logger exactamente uma vez.

    Parameters
    ----------
    level : int | str | None
        Nível mínimo de mensagens. Se None, lê $DISSONANCE_LOG_LEVEL (default = INFO).
    fmt : str | None
        Formato da mensagem.  Se None, usa um formato padrão.
    """
    root = logging.getLogger()
    if root.handlers:                     # já existe configuração → não duplica
        return

    logging.basicConfig(level=resolve_log_level(level), format=fmt or DEFAULT_FORMAT)
