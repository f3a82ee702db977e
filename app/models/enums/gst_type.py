from enum import Enum

class GSTType(str, Enum):
    igst = "igst"            # inter-state
    cgst_sgst = "cgst_sgst"  # intra-state
