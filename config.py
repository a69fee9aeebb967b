import os
from dotenv import load_dotenv


load_dotenv()


def env_flag(name, default=False):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///ai_trap_logs.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Base URL stamped into generated tracking snippets
    ANALYTICS_URL = os.getenv('ANALYTICS_URL', 'http://localhost:3000')

    # False runs the single-tenant trap: no registry, no credentials
    MULTI_TENANT = env_flag('MULTI_TENANT', True)

    BOT_MATCH_CASE_SENSITIVE = env_flag('BOT_MATCH_CASE_SENSITIVE', False)
    BOT_SIGNATURES_FILE = os.getenv('BOT_SIGNATURES_FILE')

    # The pixel can read the user agent from ?user_agent= before the header.
    # Anyone can claim any agent that way; turn off to trust the header only.
    PIXEL_TRUST_UA_PARAM = env_flag('PIXEL_TRUST_UA_PARAM', True)

    SELF_TRAP_ENABLED = env_flag('SELF_TRAP_ENABLED', False)
    SELF_TRAP_WEBSITE_ID = os.getenv('SELF_TRAP_WEBSITE_ID') or None

    LOGS_DEFAULT_LIMIT = int(os.getenv('LOGS_DEFAULT_LIMIT', '50'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    PORT = int(os.getenv('PORT', '3000'))
