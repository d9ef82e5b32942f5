from .client import RestClient
from .clinic import ClinicApi, note_payload

__all__ = ['ClinicApi', 'RestClient', 'note_payload']
