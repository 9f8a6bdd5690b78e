# Database schema definitions
# Ids are uuid4 strings generated by the app. Timestamps are UTC ISO-8601 text.

USERS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'USER' CHECK (role IN ('USER', 'MODERATOR', 'ADMIN')),
        status TEXT NOT NULL DEFAULT 'ACTIVE' CHECK (status IN ('ACTIVE', 'SUSPENDED', 'BANNED')),
        created_at TEXT NOT NULL
    )
'''

PROFILES_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        display_name TEXT NOT NULL,
        avatar_url TEXT,
        bio TEXT,
        location TEXT,            -- JSON object {lat, lng, city, state, country}
        vehicle TEXT,             -- JSON object {brand, model, year, battery_capacity}
        interests TEXT,           -- JSON array
        followers_count INTEGER NOT NULL DEFAULT 0,
        following_count INTEGER NOT NULL DEFAULT 0,
        notification_prefs TEXT,  -- JSON object {new_post, like, comment}
        accepts_messages BOOLEAN NOT NULL DEFAULT 1
    )
'''

USER_FOLLOWS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS user_follows (
        id TEXT PRIMARY KEY,
        follower_id TEXT NOT NULL,
        following_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE(follower_id, following_id)
    )
'''

USER_BLOCKS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS user_blocks (
        id TEXT PRIMARY KEY,
        blocker_id TEXT NOT NULL,
        blocked_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE(blocker_id, blocked_id)
    )
'''

COMMUNITIES_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS communities (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        slug TEXT UNIQUE NOT NULL,
        type TEXT NOT NULL,
        description TEXT,
        cover_image_url TEXT,
        moderators TEXT,          -- JSON array of user ids
        members_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
'''

COMMUNITY_MEMBERS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS community_members (
        id TEXT PRIMARY KEY,
        community_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        joined_at TEXT NOT NULL,
        UNIQUE(community_id, user_id)
    )
'''

POSTS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS posts (
        id TEXT PRIMARY KEY,
        author_id TEXT NOT NULL,
        community_id TEXT,
        title TEXT,
        text TEXT NOT NULL,
        media TEXT,               -- JSON array of {type, url}
        likes TEXT NOT NULL DEFAULT '[]',  -- JSON array of user ids
        comments_count INTEGER NOT NULL DEFAULT 0,
        visibility TEXT NOT NULL DEFAULT 'PUBLIC' CHECK (visibility IN ('PUBLIC', 'COMMUNITY', 'PRIVATE')),
        created_at TEXT NOT NULL
    )
'''

COMMENTS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS comments (
        id TEXT PRIMARY KEY,
        post_id TEXT NOT NULL,
        author_id TEXT NOT NULL,
        text TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
'''

STATIONS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS stations (
        id TEXT PRIMARY KEY,
        external_id TEXT,
        name TEXT NOT NULL,
        coords TEXT NOT NULL,     -- JSON object {lat, lng}
        address TEXT NOT NULL,
        connectors TEXT NOT NULL DEFAULT '[]',  -- JSON array of {type, power_kw}
        provider TEXT,
        pricing TEXT,
        availability TEXT,
        verified BOOLEAN NOT NULL DEFAULT 0,
        added_by TEXT,
        bookmarks_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
'''

BOOKMARKS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS bookmarks (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        target_type TEXT NOT NULL,
        target_id TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
'''

QUESTIONS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS questions (
        id TEXT PRIMARY KEY,
        author_id TEXT NOT NULL,
        title TEXT NOT NULL,
        body TEXT NOT NULL,
        tags TEXT NOT NULL DEFAULT '[]',
        upvotes TEXT NOT NULL DEFAULT '[]',
        answers_count INTEGER NOT NULL DEFAULT 0,
        solved_answer_id TEXT,
        created_at TEXT NOT NULL
    )
'''

ANSWERS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS answers (
        id TEXT PRIMARY KEY,
        question_id TEXT NOT NULL,
        author_id TEXT NOT NULL,
        body TEXT NOT NULL,
        upvotes TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL
    )
'''

ARTICLES_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS articles (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL CHECK (kind IN ('NEWS', 'KNOWLEDGE', 'TIP')),
        title TEXT NOT NULL,
        summary TEXT NOT NULL,
        body TEXT NOT NULL,
        author_id TEXT NOT NULL,
        cover_image_url TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        likes TEXT NOT NULL DEFAULT '[]',
        comments_count INTEGER NOT NULL DEFAULT 0,
        published_at TEXT NOT NULL
    )
'''

ARTICLE_COMMENTS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS article_comments (
        id TEXT PRIMARY KEY,
        article_id TEXT NOT NULL,
        author_id TEXT NOT NULL,
        text TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
'''

KNOWLEDGE_CATEGORIES_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS knowledge_categories (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL,
        icon TEXT NOT NULL,
        color TEXT NOT NULL,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
'''

REPORTS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS reports (
        id TEXT PRIMARY KEY,
        reporter_id TEXT NOT NULL,
        target_type TEXT NOT NULL,
        target_id TEXT NOT NULL,
        reason TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN', 'IN_REVIEW', 'RESOLVED', 'DISMISSED')),
        handled_by TEXT,
        created_at TEXT NOT NULL
    )
'''

# Append-only
AUDIT_LOGS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS audit_logs (
        id TEXT PRIMARY KEY,
        action TEXT NOT NULL,
        actor_id TEXT,
        target_type TEXT,
        target_id TEXT,
        metadata TEXT,            -- JSON object
        created_at TEXT NOT NULL
    )
'''

NOTIFICATIONS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        actor_id TEXT,
        target_type TEXT,
        target_id TEXT,
        metadata TEXT,            -- JSON object
        is_read BOOLEAN NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
'''

CONVERSATIONS_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS conversations (
        id TEXT PRIMARY KEY,
        participant_a_id TEXT NOT NULL,
        participant_b_id TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
'''

MESSAGES_TABLE_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        conversation_id TEXT NOT NULL,
        sender_id TEXT NOT NULL,
        body TEXT NOT NULL,
        is_read BOOLEAN NOT NULL DEFAULT 0,
        read_at TEXT,
        created_at TEXT NOT NULL
    )
'''

TABLE_SCHEMAS = [
    USERS_TABLE_SCHEMA,
    PROFILES_TABLE_SCHEMA,
    USER_FOLLOWS_TABLE_SCHEMA,
    USER_BLOCKS_TABLE_SCHEMA,
    COMMUNITIES_TABLE_SCHEMA,
    COMMUNITY_MEMBERS_TABLE_SCHEMA,
    POSTS_TABLE_SCHEMA,
    COMMENTS_TABLE_SCHEMA,
    STATIONS_TABLE_SCHEMA,
    BOOKMARKS_TABLE_SCHEMA,
    QUESTIONS_TABLE_SCHEMA,
    ANSWERS_TABLE_SCHEMA,
    ARTICLES_TABLE_SCHEMA,
    ARTICLE_COMMENTS_TABLE_SCHEMA,
    KNOWLEDGE_CATEGORIES_TABLE_SCHEMA,
    REPORTS_TABLE_SCHEMA,
    AUDIT_LOGS_TABLE_SCHEMA,
    NOTIFICATIONS_TABLE_SCHEMA,
    CONVERSATIONS_TABLE_SCHEMA,
    MESSAGES_TABLE_SCHEMA,
]

INDEX_SCHEMAS = [
    'CREATE UNIQUE INDEX IF NOT EXISTS idx_profiles_user ON profiles (user_id)',
    # One conversation per unordered pair of users
    '''CREATE UNIQUE INDEX IF NOT EXISTS idx_conversations_pair
       ON conversations (min(participant_a_id, participant_b_id), max(participant_a_id, participant_b_id))''',
    'CREATE INDEX IF NOT EXISTS idx_posts_created ON posts (created_at)',
    'CREATE INDEX IF NOT EXISTS idx_comments_post ON comments (post_id)',
    'CREATE INDEX IF NOT EXISTS idx_answers_question ON answers (question_id)',
    'CREATE INDEX IF NOT EXISTS idx_article_comments_article ON article_comments (article_id)',
    'CREATE INDEX IF NOT EXISTS idx_bookmarks_user ON bookmarks (user_id, target_id)',
    'CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications (user_id, is_read)',
    'CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages (conversation_id, created_at)',
]
