import os
from dotenv import load_dotenv
load_dotenv()

SITE_URL            = os.getenv('SITE_URL', 'https://the-pitch-fund.vercel.app').rstrip('/')

SUPABASE_URL        = os.getenv('SUPABASE_URL', '').rstrip('/')
SUPABASE_ANON_KEY   = os.getenv('SUPABASE_ANON_KEY', '')

BEEHIIV_API_TOKEN      = os.getenv('BEEHIIV_API_TOKEN', '')
BEEHIIV_PUBLICATION_ID = os.getenv('BEEHIIV_PUBLICATION_ID', '')

VECTORIZER_AI_USER_ID      = os.getenv('VECTORIZER_AI_USER_ID', '')
VECTORIZER_AI_API_TOKEN    = os.getenv('VECTORIZER_AI_API_TOKEN', '')
ENABLE_IMAGE_VECTORIZATION = os.getenv('ENABLE_IMAGE_VECTORIZATION', 'false').lower() == 'true'
LOGO_OUTPUT_DIR            = os.getenv('LOGO_OUTPUT_DIR', 'output/logos')

OPENAI_API_KEY      = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL        = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

REQUEST_TIMEOUT     = float(os.getenv('REQUEST_TIMEOUT', '15'))
LOG_LEVEL           = os.getenv('LOG_LEVEL', 'INFO')
AUTH_COOKIE_NAME    = os.getenv('AUTH_COOKIE_NAME', 'sb-access-token')
