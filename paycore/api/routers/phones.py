"""Pakistani mobile number validation."""

from fastapi import APIRouter

from paycore.modules.phones import PhoneValidator
from paycore.schemas import PhoneValidationRequest, PhoneValidationResponse

router = APIRouter()


@router.post("/validate", response_model=PhoneValidationResponse)
async def validate_phone(payload: PhoneValidationRequest):
    return PhoneValidationResponse(
        phone=payload.phone,
        valid=PhoneValidator.is_valid(payload.phone),
        normalized=PhoneValidator.normalize(payload.phone),
        network=PhoneValidator.network_of(payload.phone),
    )
