"""Exceptions for use in Swiss Forecast"""

# Swiss Forecast
# Copyright (C) 2025  Swiss Forecast developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.


# ========== Base Application Exception ==========


class SwissForecastException(Exception):
    """Base exception for all Swiss Forecast errors.

    All custom exceptions in the application should inherit from this class.
    This enables catching all application-specific errors with a single except clause.
    """

    #: Whether the caller may safely run the same request again
    retryable = False


# ========== Input Exceptions ==========


class InputException(SwissForecastException):
    """Base exception for malformed caller input. Never retried."""

    pass


class InvalidRoundException(InputException):
    """Raised when a requested round number is missing or out of range."""

    pass


class EmptyPoolException(InputException):
    """Raised when there is no eligible player to pair."""

    pass


class InvalidTournamentDataException(InputException):
    """Raised when tournament data cannot be interpreted at all."""

    pass


# ========== Pairing Exceptions ==========


class PairingException(SwissForecastException):
    """Base exception for pairing-related errors."""

    pass


class PairingTimeoutException(PairingException):
    """Raised when a prediction exceeds its wall-clock budget."""

    retryable = True


# ========== External Engine Exceptions ==========


class ExternalEngineException(SwissForecastException):
    """Raised when the delegated pairing engine fails or returns nothing.

    There is no safe partial result in that case, so it is not retried.
    """

    pass


# ========== Configuration Exceptions ==========


class ConfigurationException(SwissForecastException):
    """Raised when configuration data is invalid or missing."""

    pass
