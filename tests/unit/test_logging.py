"""ABOUTME: Unit tests for the logging set up
ABOUTME: Checks the dictConfig schema and how logging_setup applies levels"""

import logging

from accountdesk.logging import HANDLER_NAME, VERBOSE_LOGGERS, build_dict_config, logging_setup


class TestBuildDictConfig:
    def test_root_uses_only_the_named_handler(self):
        schema = build_dict_config("dev_console")

        assert schema["root"]["handlers"] == ["dev_console"]
        assert schema["handlers"]["dev_console"]["formatter"] == "console"
        assert schema["handlers"]["default"]["formatter"] == "json"

    def test_existing_loggers_stay_enabled(self):
        assert build_dict_config()["disable_existing_loggers"] is False


class TestLoggingSetup:
    def test_sets_root_and_handler_level(self, clear_env_vars):
        clear_env_vars("LOG_ALL_REQUESTS")

        logging_setup(logging.WARNING)

        assert logging.getLogger().level == logging.WARNING
        assert logging.getHandlerByName(HANDLER_NAME).level == logging.WARNING
        logging_setup(logging.INFO)

    def test_log_all_requests_turns_up_library_loggers(self, temp_env_vars):
        temp_env_vars(LOG_ALL_REQUESTS="true")

        logging_setup(logging.INFO)

        assert logging.getLogger().level == logging.DEBUG
        for name, level in VERBOSE_LOGGERS.items():
            assert logging.getLogger(name).level == level
        logging.getLogger().setLevel(logging.INFO)
        for name in VERBOSE_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)
