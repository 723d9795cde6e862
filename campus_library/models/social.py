from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from campus_library.database import Base
from campus_library.utils.timezone import now_local

class Channel(Base):
    __tablename__ = "channel"

    channel_id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    link_name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    owner = relationship("User", back_populates="channel")
    followers = relationship("Follow", back_populates="channel", cascade="all, delete-orphan")
    posts = relationship("Post", back_populates="channel", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": str(self.channel_id),
            "ownerId": str(self.owner_id),
            "name": self.name,
            "linkName": self.link_name,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "owner": self.owner.to_summary() if self.owner else None,
            "followerCount": len(self.followers),
        }

class Follow(Base):
    __tablename__ = "follow"

    follow_id = Column(Integer, primary_key=True, autoincrement=True)
    channel_id = Column(Integer, ForeignKey("channel.channel_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    channel = relationship("Channel", back_populates="followers")

    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_follow_channel_user"),
    )

class Post(Base):
    __tablename__ = "post"

    post_id = Column(Integer, primary_key=True, autoincrement=True)
    channel_id = Column(Integer, ForeignKey("channel.channel_id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    post_image = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local, index=True)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local)

    # Relationships
    channel = relationship("Channel", back_populates="posts")
    author = relationship("User")
    reactions = relationship("PostReaction", back_populates="post", cascade="all, delete-orphan")
    comments = relationship("PostComment", back_populates="post", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": str(self.post_id),
            "channelId": str(self.channel_id),
            "authorId": str(self.author_id),
            "content": self.content,
            "postImage": self.post_image,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "author": self.author.to_summary() if self.author else None,
            "channel": {
                "id": str(self.channel.channel_id),
                "name": self.channel.name,
                "linkName": self.channel.link_name,
            } if self.channel else None,
            "reactions": [
                {"emoji": r.emoji, "userId": str(r.user_id)} for r in self.reactions
            ],
        }

class PostComment(Base):
    __tablename__ = "post_comment"

    comment_id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("post.post_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False)
    # Replies point at their parent; deletes of children are done by the comment service
    parent_id = Column(Integer, ForeignKey("post_comment.comment_id"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User")

    def to_dict(self):
        return {
            "id": str(self.comment_id),
            "postId": str(self.post_id),
            "userId": str(self.user_id),
            "parentId": str(self.parent_id) if self.parent_id else None,
            "content": self.content,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "user": self.user.to_summary() if self.user else None,
        }

class PostReaction(Base):
    __tablename__ = "post_reaction"

    reaction_id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("post.post_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False)
    emoji = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    post = relationship("Post", back_populates="reactions")

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_reaction_post_user"),
    )

    def to_dict(self):
        return {
            "id": str(self.reaction_id),
            "postId": str(self.post_id),
            "userId": str(self.user_id),
            "emoji": self.emoji,
        }
