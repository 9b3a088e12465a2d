"""
Indian GST helpers.

GSTIN layout: 2-digit state code, 10-character PAN, entity number, 'Z',
checksum character. The state code decides whether a purchase is intrastate
(CGST + SGST) or interstate (IGST).
"""
import re
from typing import Optional

GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")

GST_RATES = (0, 5, 12, 18, 28)

INDIAN_STATES = {
    "01": "Jammu and Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "26": "Dadra and Nagar Haveli and Daman and Diu",
    "27": "Maharashtra",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman and Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh",
    "38": "Ladakh",
}


def validate_gstin(gstin: str) -> bool:
    return bool(gstin) and GSTIN_PATTERN.match(gstin) is not None


def state_code_from_gstin(gstin: Optional[str]) -> Optional[str]:
    if gstin and len(gstin) >= 2:
        return gstin[:2]
    return None


def state_name(code: str) -> Optional[str]:
    return INDIAN_STATES.get(code)


def is_intrastate(vendor_state_code: Optional[str], home_state_code: str) -> bool:
    """
    Vendors with no known state code are treated as local, the same way
    unregistered vendors are.
    """
    if not vendor_state_code:
        return True
    return vendor_state_code == home_state_code
