# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (cada test usa su propio directorio de datos)
#   - Migración gradual (cambiar repos sin tocar servicios)
#
# ═══════════════════════════════════════════════════════════════════════════════
# MIGRACIÓN A SQL
# ═══════════════════════════════════════════════════════════════════════════════
# 1. Crear repositorios SQL con los mismos métodos que los de repositories/
# 2. Cambiar la instanciación de los repositorios en este archivo
# 3. Los servicios NO requieren cambios
# ==============================================================================

from typing import Optional

from discobar import config

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from discobar.repositories import (
    CategoryRepository,
    MovementRepository,
    OrderDetailRepository,
    OrderRepository,
    ProductRepository,
    RoleRepository,
    SaleRepository,
    SettingsRepository,
    TableRepository,
    UserRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from discobar.services import (
    CategoryService,
    ChangeFeed,
    InventoryService,
    OrderService,
    ReportService,
    SettingsService,
    TableService,
    UserService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(base_path='/srv/discobar/data')
        order_service = container.order_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None):
        """
        Args:
            base_path: Directorio de los archivos JSON
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        self.feed = ChangeFeed(max_queue=config.REALTIME_MAX_QUEUE)
        self.reset()
        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def table_repo(self) -> TableRepository:
        if self._table_repo is None:
            self._table_repo = TableRepository(self._base_path)
        return self._table_repo

    @property
    def category_repo(self) -> CategoryRepository:
        if self._category_repo is None:
            self._category_repo = CategoryRepository(self._base_path)
        return self._category_repo

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository(self._base_path)
        return self._product_repo

    @property
    def order_repo(self) -> OrderRepository:
        if self._order_repo is None:
            self._order_repo = OrderRepository(self._base_path)
        return self._order_repo

    @property
    def detail_repo(self) -> OrderDetailRepository:
        if self._detail_repo is None:
            self._detail_repo = OrderDetailRepository(self._base_path)
        return self._detail_repo

    @property
    def sale_repo(self) -> SaleRepository:
        if self._sale_repo is None:
            self._sale_repo = SaleRepository(self._base_path)
        return self._sale_repo

    @property
    def movement_repo(self) -> MovementRepository:
        if self._movement_repo is None:
            self._movement_repo = MovementRepository(self._base_path)
        return self._movement_repo

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository(self._base_path)
        return self._user_repo

    @property
    def role_repo(self) -> RoleRepository:
        if self._role_repo is None:
            self._role_repo = RoleRepository(self._base_path)
        return self._role_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self._base_path)
        return self._settings_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def settings_service(self) -> SettingsService:
        if self._settings_service is None:
            self._settings_service = SettingsService(self.settings_repo)
        return self._settings_service

    @property
    def category_service(self) -> CategoryService:
        if self._category_service is None:
            self._category_service = CategoryService(self.category_repo, self.product_repo, self.feed)
        return self._category_service

    @property
    def inventory_service(self) -> InventoryService:
        """Servicio de inventario (singleton)."""
        if self._inventory_service is None:
            self._inventory_service = InventoryService(
                self.product_repo,
                self.movement_repo,
                self.category_repo,
                self.detail_repo,
                self.settings_service,
                self.feed
            )
        return self._inventory_service

    @property
    def table_service(self) -> TableService:
        if self._table_service is None:
            self._table_service = TableService(self.table_repo, self.order_repo, self.feed)
        return self._table_service

    @property
    def order_service(self) -> OrderService:
        """Servicio de pedidos (singleton)."""
        if self._order_service is None:
            self._order_service = OrderService(
                self.order_repo,
                self.detail_repo,
                self.sale_repo,
                self.product_repo,
                self.user_repo,
                self.table_service,
                self.inventory_service,
                self.feed
            )
        return self._order_service

    @property
    def report_service(self) -> ReportService:
        if self._report_service is None:
            self._report_service = ReportService(
                self.sale_repo,
                self.order_repo,
                self.table_repo,
                self.product_repo,
                self.movement_repo,
                self.user_repo
            )
        return self._report_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.user_repo, self.role_repo, self.feed)
        return self._user_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        self._table_repo = None
        self._category_repo = None
        self._product_repo = None
        self._order_repo = None
        self._detail_repo = None
        self._sale_repo = None
        self._movement_repo = None
        self._user_repo = None
        self._role_repo = None
        self._settings_repo = None

        self._settings_service = None
        self._category_service = None
        self._inventory_service = None
        self._table_service = None
        self._order_service = None
        self._report_service = None
        self._user_service = None

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Directorio de datos (solo se usa en la primera llamada)
        """
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """Obtiene el contenedor de dependencias global."""
    return AppContainer.get_instance(base_path)
