# Database module
from stylist_service.db.mongo import (
    connect,
    get_collection,
    health_check,
    reset_connection,
)
from stylist_service.db.wardrobe import get_wardrobe, attach_item_analysis
from stylist_service.db.profiles import get_profile
from stylist_service.db.outfits import save_outfit, save_recommendations, get_outfit_history
from stylist_service.db.store import (
    InventoryReader,
    ProfileReader,
    HistoryReader,
    PersistenceWriter,
    StylistStore,
    MongoStore,
)
