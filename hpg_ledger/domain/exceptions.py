"""Domain-specific exceptions"""


class LedgerError(Exception):
    """Base exception for ledger validation failures"""

    pass


class CustomerNotFound(LedgerError):
    """No customer is registered under the given token"""

    pass


class DuplicateAssessment(LedgerError):
    """The fiscal year already has a payment record for this customer"""

    pass


class LoanNotFound(LedgerError):
    """The customer has no loan with the given id"""

    pass


class LoanAlreadySettled(LedgerError):
    """Repayment attempted against a loan that is already repaid"""

    pass


class NoInstallmentsSelected(LedgerError):
    """Repayment submitted without any installment"""

    pass


class TooManyInstallments(LedgerError):
    """Installment count is negative or exceeds the installments left on the loan"""

    pass


class InvalidLoanTerms(LedgerError):
    """Loan terms cannot produce a valid schedule"""

    pass


class AlreadyActive(LedgerError):
    """Customer is already on the premium daily plan"""

    pass


class NotEligible(LedgerError):
    """Customer's tax category does not qualify for the premium daily plan"""

    pass


class PlanNotActive(LedgerError):
    """Daily-cycle lending requested before the premium plan was activated"""

    pass


class CorruptLedgerData(LedgerError):
    """Stored ledger data is malformed; writing over it is refused"""

    pass
