"""
Navigation menu tree for the dashboard sidebar.
Visibility per item is resolved by app.core.access.filter_menu.
"""

MENU_CONFIG = [
    # Available to all authenticated users
    {
        "id": "dashboard",
        "name": "Dashboard",
        "href": "/dashboard",
        "icon_name": "Home",
        "description": "Overview and quick actions",
    },
    {
        "id": "analytics",
        "name": "Analytics",
        "href": "/dashboard/analytics",
        "icon_name": "BarChart3",
        "description": "View statistics and insights",
        "required_roles": ["admin", "moderator"],
        "required_permissions": ["analytics.view"],
    },
    {
        "id": "reports",
        "name": "Reports",
        "href": "/dashboard/reports",
        "icon_name": "FileText",
        "description": "Generate and view reports",
        "required_roles": ["admin", "moderator"],
        "required_permissions": ["reports.view"],
    },
    {
        "id": "data-demos",
        "name": "Data Tables",
        "href": "#",
        "icon_name": "Database",
        "description": "Data table demonstrations",
        "children": [
            {
                "id": "basic-table",
                "name": "Basic Table",
                "href": "/dashboard/data-table-demo",
                "icon_name": "FileText",
                "description": "Simple data table with drag & drop",
            },
            {
                "id": "advanced-table",
                "name": "Advanced Table",
                "href": "/dashboard/advanced-table-demo",
                "icon_name": "BarChart3",
                "description": "Production-ready data table",
            },
        ],
    },
    {
        "id": "notifications",
        "name": "Notifications",
        "href": "/dashboard/notifications",
        "icon_name": "Bell",
        "description": "View your notifications",
        "badge": {"text": "3", "variant": "destructive"},
    },
    # Administration section
    {
        "id": "admin-section",
        "name": "Administration",
        "href": "#",
        "icon_name": "Shield",
        "description": "System administration",
        "required_roles": ["admin"],
        "required_permissions": ["admin.access"],
        "children": [
            {
                "id": "admin-dashboard",
                "name": "Admin Panel",
                "href": "/admin",
                "icon_name": "Shield",
                "description": "Administrative overview",
                "required_roles": ["admin"],
            },
            {
                "id": "user-management",
                "name": "User Management",
                "href": "/admin/users",
                "icon_name": "Users",
                "description": "Manage user accounts",
                "required_roles": ["admin"],
                "required_permissions": ["user.read"],
            },
            {
                "id": "system-settings",
                "name": "System Settings",
                "href": "/admin/settings",
                "icon_name": "Settings",
                "description": "Configure system settings",
                "required_roles": ["admin"],
                "required_permissions": ["system.manage"],
            },
            {
                "id": "audit-logs",
                "name": "Audit Logs",
                "href": "/admin/logs",
                "icon_name": "Activity",
                "description": "View system audit logs",
                "required_roles": ["admin"],
            },
        ],
    },
    # Moderator tools
    {
        "id": "moderation",
        "name": "Moderation",
        "href": "#",
        "icon_name": "Lock",
        "description": "Content moderation tools",
        "required_roles": ["admin", "moderator"],
        "children": [
            {
                "id": "content-review",
                "name": "Content Review",
                "href": "/moderation/content",
                "icon_name": "FileText",
                "description": "Review flagged content",
                "required_roles": ["admin", "moderator"],
            },
            {
                "id": "user-reports",
                "name": "User Reports",
                "href": "/moderation/reports",
                "icon_name": "Mail",
                "description": "Handle user reports",
                "required_roles": ["admin", "moderator"],
            },
        ],
    },
    # Personal section
    {
        "id": "personal",
        "name": "Personal",
        "href": "#",
        "icon_name": "User",
        "description": "Personal settings and preferences",
        "children": [
            {
                "id": "profile",
                "name": "Profile",
                "href": "/profile",
                "icon_name": "User",
                "description": "Manage your profile",
            },
            {
                "id": "preferences",
                "name": "Preferences",
                "href": "/dashboard/settings",
                "icon_name": "Settings",
                "description": "App preferences and settings",
            },
        ],
    },
]
