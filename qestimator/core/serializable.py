"""Interface for objects that can be created from a JSON configuration."""

from __future__ import annotations

import abc
import logging
from typing import Any

from qestimator.core.utils import ConfigurationError


class JSONSerializable(abc.ABC):
    """Interface making an object creatable from a dictionary.

    Serializable base class establishing
    :meth:`~qestimator.core.serializable.JSONSerializable.from_json` abstract
    method.
    """

    @classmethod
    @abc.abstractmethod
    def from_json(cls, data: dict[str, Any]) -> Any:
        """Abstract method to create object from a dictionary.

        :param dict[str, Any] data: dictionary representation of the object.
        :return: qestimator object.
        :rtype: Any
        """
        ...

    @classmethod
    def from_json_safe(cls, data: dict[str, Any]) -> Any:
        """Parse dictionary to create object.

        :param dict[str, Any] data: dictionary representation of the object.
        :raises ConfigurationError: malformed configuration
        :return: qestimator object.
        :rtype: Any
        """
        type_ = cls.__name__
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration of `{type_}' should be an object, got `{data}'"
            )
        try:
            return cls.from_json(data)
        except KeyError as e:
            raise ConfigurationError(
                f"Missing key `{e.args[0]}' for object of type `{type_}'"
            ) from None
        except (TypeError, ValueError) as e:
            logging.error(e)
            raise ConfigurationError(
                f"Invalid value for object of type `{type_}'"
            ) from None
