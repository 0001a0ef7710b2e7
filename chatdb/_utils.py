import logging

logger = logging.getLogger("chatdb")
