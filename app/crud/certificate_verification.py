from app.crud.base import CRUDBase
from app.models.certificate_verification import CertificateVerification

class CRUDCertificateVerification(CRUDBase[CertificateVerification, dict, dict]):
    pass

certificate_verification = CRUDCertificateVerification(CertificateVerification)
