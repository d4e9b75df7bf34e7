# Options are looked up in the Flask app.config first,
# then in the RatAPI class attributes (the defaults), then in the environment
import logging
import os
from typing import Any, Optional

from flask import current_app

import ratapi


def get_config(option: str) -> Optional[Any]:
    """
    :param option: option name, e.g. "MAX_PAGE_LIMIT"
    :return: the option value, None when it is set nowhere
    """
    try:
        return current_app.config[option]
    except KeyError:
        pass
    except RuntimeError:
        # no app context, e.g. when the engine is used from a script
        pass
    return getattr(ratapi.RatAPI, option, os.environ.get(option))


def is_debug() -> bool:
    """
    Debug mode follows the level of the ratapi logger, cfr. the DEBUG environment variable
    """
    return ratapi.log.getEffectiveLevel() < logging.INFO
