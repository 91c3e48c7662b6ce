# channel/utils.py
import time

from .models import ClientPartner


def company_initials(name: str) -> str:
    return "".join(word[0] for word in name.split() if word).upper()


def generate_cp_id(company_name: str) -> str:
    """
    'Sky Realty Partners' → 'CP-SRP-654321' (last 6 digits of ms timestamp).
    Same millisecond me clash ho to agla number.
    """
    initials = company_initials(company_name)
    stamp = int(time.time() * 1000)
    while True:
        code = f"CP-{initials}-{str(stamp)[-6:]}"
        if not ClientPartner.objects.filter(cp_id=code).exists():
            return code
        stamp += 1
