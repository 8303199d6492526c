"""EnvEnc Meta information.
   EnvEnc encrypts environment variable values at rest inside .env files.
"""
__title__ = 'envenc'
__description__ = (
   'EnvEnc encrypts sensitive environment variable values '
   'with ChaCha20-Poly1305 or AES-256-GCM.'
)
__version__ = '0.1.0'
__license__ = 'Apache-2.0'
