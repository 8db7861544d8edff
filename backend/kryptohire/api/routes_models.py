from fastapi import APIRouter

from ..ai_models import visible_models
from ..schemas import ModelInfo, ModelsResponse

router = APIRouter(prefix="/models", tags=["models"])


@router.get("", response_model=ModelsResponse)
def list_models():
    return ModelsResponse(data=[
        ModelInfo(id=m.id, name=m.name, provider=m.provider, is_free=m.is_free, requires_pro=m.requires_pro)
        for m in visible_models()
    ])
