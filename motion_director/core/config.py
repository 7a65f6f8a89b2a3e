"""Configuration and setup for the Motion Director agent"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Model Configuration
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')
PROJECT_ID = os.getenv('GCP_PROJECT_ID')
LOCATION = os.getenv('GOOGLE_CLOUD_REGION', 'us-central1')
USE_VERTEX_AI = os.getenv('USE_VERTEX_AI', 'false').lower() == 'true'
DIRECTOR_MODEL = os.getenv('DIRECTOR_MODEL', 'gemini-2.5-pro')
DIRECTOR_TEMPERATURE = float(os.getenv('DIRECTOR_TEMPERATURE', '0.7'))

# Workspace Configuration
PROJECTS_ROOT = os.getenv('PROJECTS_ROOT', os.path.join(os.getcwd(), 'projects'))
ENGINE_ROOT = os.getenv('ENGINE_ROOT', '')  # Deploy mirror target, disabled when empty

# Logging Configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Turn Loop Configuration
MAX_NUDGES = 50  # Corrective turns sent when the model stalls before Main.tsx exists
MAX_TOOL_ROUNDS = 100  # Consecutive model turns that request tools
MAX_FINDINGS_REPORTED = 10
ERROR_MESSAGE_LIMIT = 100

# Text Repair Configuration
MAX_KEY_REPAIR_DEPTH = 5

# Memory Configuration
MAX_DECISIONS = 15
MAX_CONVERSATION = 50
MAX_ACTIONS = 30
CONVERSATION_CONTENT_LIMIT = 500
ACTION_ERROR_LIMIT = 200
CONTEXT_CONVERSATION_WINDOW = 5
CONTEXT_ACTION_WINDOW = 10
MAX_BRAND_COLORS = 6
BRAIN_VERSION = 2

# Tool Execution Configuration
TOOL_TIMEOUT_SECONDS = 60.0
INSTALL_TIMEOUT_SECONDS = 120.0
DOWNLOAD_TIMEOUT_SECONDS = 30.0
PACKAGE_INSTALL_COMMAND = ['npm', 'install', '--no-audit', '--no-fund']

# Composition Defaults
ENTRY_FILE = 'Main.tsx'
ROOT_DESCRIPTOR_FILE = 'Root.tsx'
ACTIVATION_RECORD_FILE = 'PreviewEntry.tsx'
DEFAULT_TOTAL_DURATION = 150
DEFAULT_FPS = 30
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080

# Workspace layout (relative to the project root)
SOURCE_DIR = 'src'
SCENES_DIR = 'scenes'
COMPONENTS_DIR = 'components'
ASSETS_DIR = 'assets'
MEMORY_DIR = 'memory'
BRAIN_FILE = 'BRAIN.json'
PLAN_FILE = 'PLAN.md'
ASSET_CATEGORIES = ('images', 'audio', 'video')


def configure_logging(level: str = None):
    """Configure root logging for CLI and server entry points"""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
