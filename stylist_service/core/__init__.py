# Core module
from stylist_service.core.errors import (
    StylistError,
    EmptyInventoryError,
    ProviderUnavailableError,
    MalformedResponseError,
    ClosedVocabularyViolation,
    NoValidOutfitsError,
    BatchGenerationError,
    PersistenceError,
)
from stylist_service.core.models import (
    WardrobeItem,
    ItemAnalysis,
    StyleProfile,
    GenerationRequest,
    GeneratedOutfit,
    SavedOutfit,
    Recommendation,
    WardrobeAnalysis,
    StyleAnalysis,
    Result,
)
