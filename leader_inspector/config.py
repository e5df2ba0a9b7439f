import os

# Network timing constants
SLOTS_PER_EPOCH = 432000
LEADER_SLOTS_PER_BLOCK = 4
SOLANA_SLOT_TIME = 0.4      # 400ms per slot

# Endpoints, overridable from the environment
SOLANA_RPC_URL = os.environ.get('SOLANA_RPC_URL', 'https://api.mainnet-beta.solana.com')
SKIP_BLAME_URL = os.environ.get('SKIP_BLAME_URL', 'https://api.trillium.so/skip_blame/')
VX_LEADERBOARD_URL = os.environ.get('VX_LEADERBOARD_URL', 'https://api.vx.tools/epochs/leaderboard/voting')

REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', '30'))
ANNOTATION_WORKERS = int(os.environ.get('ANNOTATION_WORKERS', '8'))
AVERAGE_SLOT_DURATION = float(os.environ.get('AVERAGE_SLOT_DURATION', str(SOLANA_SLOT_TIME)))

LOG_DIR = os.environ.get('LOG_DIR', os.path.expanduser('~/log'))
LOG_TO_FILE = os.environ.get('LOG_TO_FILE', 'false').lower() == 'true'
