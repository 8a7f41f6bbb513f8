"""Generate typed TypeScript Twirp clients from protobuf schemas."""
