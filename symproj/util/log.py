# Copyright 2025-2026 The symproj contributors
#
# This file is part of symproj.
#
# This Source Code Form is subject to the terms of the Mozilla Public License,
# v. 2.0. If a copy of the MPL was not distributed with this file, You can
# obtain one at https://mozilla.org/MPL/2.0/.

"""Logging helper functions."""

import logging
import os

__all__ = ('setup_log', 'log_symmetries')

ALLOWED_LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
}
DEFAULT_LEVEL = logging.INFO
DEFAULT_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


def setup_log(path=None, log_level=None, log_format=None):
    """Set up logging to a file, or to stderr if no path is given.

    Parameters
    ----------
    path : str, optional
        Log file path. If empty or ``None``, log to stderr.
    log_level : str or int, optional
        Verbosity, either one of the keys of ``ALLOWED_LOG_LEVELS`` or a
        `logging` level. Unknown values fall back to ``DEFAULT_LEVEL``.
    log_format : str, optional
        Format string for log entries.

    Returns
    -------
    logger : `logging.Logger`
        The package logger ``'symproj'``.
    """
    if log_level in ALLOWED_LOG_LEVELS:
        log_level = ALLOWED_LOG_LEVELS[log_level]
    if log_level not in ALLOWED_LOG_LEVELS.values():
        log_level = DEFAULT_LEVEL
    if log_format is None:
        log_format = DEFAULT_FORMAT

    if path:
        dirname = os.path.dirname(path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        handler = logging.FileHandler(path)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(log_format))

    logger = logging.getLogger('symproj')
    logger.setLevel(log_level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(handler)
    return logger


def log_symmetries(symmetries, logger=None):
    """Log the enabled symmetries of an engine in a readable format.

    Parameters
    ----------
    symmetries : `DataSymmetriesForBins`
        Engine whose configuration should be logged.
    logger : `logging.Logger`, optional
        Logger to use. Default: the ``'symproj.symmetries'`` logger.
    """
    if logger is None:
        logger = logging.getLogger('symproj.symmetries')
    logger.info('%s: group order %d', type(symmetries).__name__,
                symmetries.group_order)
    for name, enabled in sorted(symmetries.enabled_symmetries.items()):
        logger.debug('  %s: %s', name, 'on' if enabled else 'off')
